from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import or_
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.errors import NotFoundError
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.models.user import User
from vidanalytica.models.channel import Channel
from vidanalytica.models.video import Video
from vidanalytica.types import CamelModel
from vidanalytica.utils.pagination import DEFAULT_PAGE_SIZE, paginate

router = APIRouter(prefix="/videos", tags=["videos"])

VIDEO_NOT_FOUND_MESSAGE = "Video not found"

ProcessingStatus = Literal["pending", "processing", "completed", "failed"]


class VideoResponse(CamelModel):
    id: int
    channel_id: int
    channel_name: str
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[str] = None
    views: int
    likes: int
    upload_date: Optional[datetime] = None
    url: Optional[str] = None
    transcript_status: str
    ideas_status: str
    transcript_id: Optional[int] = None
    ideas_count: int


class VideoListResponse(CamelModel):
    videos: List[VideoResponse]
    total: int
    page: int
    total_pages: int


class BulkVideoRequest(CamelModel):
    video_ids: List[int] = Field(..., min_length=1)


class ActionResponse(CamelModel):
    success: bool
    message: str


def owned_videos(db: Session, user: User):
    """Query of every video on a channel the user tracks"""
    return db.query(Video).join(Channel).filter(Channel.user_id == user.id)


def serialize_video(video: Video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        channel_id=video.channel_id,
        channel_name=video.channel.name,
        title=video.title,
        description=video.description,
        thumbnail=video.thumbnail,
        duration=video.duration,
        views=video.views,
        likes=video.likes,
        upload_date=video.upload_date,
        url=video.url,
        transcript_status=video.transcript_status,
        ideas_status=video.ideas_status,
        transcript_id=video.transcript.id if video.transcript else None,
        ideas_count=len(video.ideas),
    )


def _request_processing(db: Session, videos: List[Video], field: str) -> int:
    """Queue videos for processing; completed or in-flight ones are left alone"""
    queued = 0
    for video in videos:
        if getattr(video, field) in ("pending", "failed"):
            setattr(video, field, "processing")
            queued += 1
    db.commit()
    return queued


@router.get("/", response_model=VideoListResponse)
async def list_videos(
    channel_id: Optional[int] = Query(None, alias="channelId"),
    transcript_status: Optional[ProcessingStatus] = Query(None, alias="transcriptStatus"),
    ideas_status: Optional[ProcessingStatus] = Query(None, alias="ideasStatus"),
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List videos across the user's channels"""
    query = owned_videos(db, current_user)
    if channel_id is not None:
        query = query.filter(Video.channel_id == channel_id)
    if transcript_status:
        query = query.filter(Video.transcript_status == transcript_status)
    if ideas_status:
        query = query.filter(Video.ideas_status == ideas_status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))

    query = query.order_by(Video.upload_date.desc(), Video.id.desc())
    result = paginate(query, page, limit)
    return VideoListResponse(
        videos=[serialize_video(v) for v in result["items"]],
        total=result["total"],
        page=result["page"],
        total_pages=result["total_pages"],
    )


@router.post("/bulk/transcripts", response_model=ActionResponse)
async def bulk_request_transcripts(
    data: BulkVideoRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    videos = owned_videos(db, current_user).filter(Video.id.in_(data.video_ids)).all()
    queued = _request_processing(db, videos, "transcript_status")
    return {"success": True, "message": f"Transcript generation started for {queued} videos"}


@router.post("/bulk/ideas", response_model=ActionResponse)
async def bulk_request_ideas(
    data: BulkVideoRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    videos = owned_videos(db, current_user).filter(Video.id.in_(data.video_ids)).all()
    queued = _request_processing(db, videos, "ideas_status")
    return {"success": True, "message": f"Ideas generation started for {queued} videos"}


@router.post("/{video_id}/transcript", response_model=ActionResponse)
async def request_transcript(
    video_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    video = owned_videos(db, current_user).filter(Video.id == video_id).first()
    if not video:
        raise NotFoundError(VIDEO_NOT_FOUND_MESSAGE)
    _request_processing(db, [video], "transcript_status")
    return {"success": True, "message": "Transcript generation started"}


@router.post("/{video_id}/ideas", response_model=ActionResponse)
async def request_ideas(
    video_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    video = owned_videos(db, current_user).filter(Video.id == video_id).first()
    if not video:
        raise NotFoundError(VIDEO_NOT_FOUND_MESSAGE)
    _request_processing(db, [video], "ideas_status")
    return {"success": True, "message": "Ideas generation started"}

