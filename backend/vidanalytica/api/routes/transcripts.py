from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.errors import NotFoundError
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.models.user import User
from vidanalytica.models.channel import Channel
from vidanalytica.models.video import Video
from vidanalytica.models.transcript import Transcript
from vidanalytica.types import CamelModel
from vidanalytica.utils.pagination import DEFAULT_PAGE_SIZE, paginate

router = APIRouter(prefix="/transcripts", tags=["transcripts"])

TRANSCRIPT_NOT_FOUND_MESSAGE = "Transcript not found"


class TimestampSegment(CamelModel):
    start: float
    end: float
    text: str


class TranscriptResponse(CamelModel):
    id: int
    video_id: int
    video_title: str
    channel_name: str
    content: str
    timestamps: List[TimestampSegment]
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TranscriptListResponse(CamelModel):
    transcripts: List[TranscriptResponse]
    total: int
    page: int
    total_pages: int


class TranscriptDetailResponse(CamelModel):
    transcript: TranscriptResponse


class TranscriptUpdate(CamelModel):
    content: str


class ActionResponse(CamelModel):
    success: bool
    message: str


def owned_transcripts(db: Session, user: User):
    return db.query(Transcript).join(Video).join(Channel).filter(Channel.user_id == user.id)


def serialize_transcript(transcript: Transcript) -> TranscriptResponse:
    return TranscriptResponse(
        id=transcript.id,
        video_id=transcript.video_id,
        video_title=transcript.video.title,
        channel_name=transcript.video.channel.name,
        content=transcript.content or "",
        timestamps=transcript.timestamps or [],
        status=transcript.status,
        created_at=transcript.created_at,
        updated_at=transcript.updated_at,
    )


def get_owned_transcript(db: Session, transcript_id: int, user: User) -> Transcript:
    transcript = owned_transcripts(db, user).filter(Transcript.id == transcript_id).first()
    if not transcript:
        raise NotFoundError(TRANSCRIPT_NOT_FOUND_MESSAGE)
    return transcript


@router.get("/", response_model=TranscriptListResponse)
async def list_transcripts(
    channel_id: Optional[int] = Query(None, alias="channelId"),
    status: Optional[Literal["pending", "processing", "completed", "failed"]] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = owned_transcripts(db, current_user)
    if channel_id is not None:
        query = query.filter(Video.channel_id == channel_id)
    if status:
        query = query.filter(Transcript.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(Video.title.ilike(pattern) | Transcript.content.ilike(pattern))

    query = query.order_by(Transcript.updated_at.desc(), Transcript.id.desc())
    result = paginate(query, page, limit)
    return TranscriptListResponse(
        transcripts=[serialize_transcript(t) for t in result["items"]],
        total=result["total"],
        page=result["page"],
        total_pages=result["total_pages"],
    )


@router.get("/{transcript_id}", response_model=TranscriptDetailResponse)
async def get_transcript(
    transcript_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    transcript = get_owned_transcript(db, transcript_id, current_user)
    return TranscriptDetailResponse(transcript=serialize_transcript(transcript))


@router.put("/{transcript_id}", response_model=ActionResponse)
async def update_transcript(
    transcript_id: int,
    data: TranscriptUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the transcript text after manual editing"""
    transcript = get_owned_transcript(db, transcript_id, current_user)
    transcript.content = data.content
    db.commit()
    return {"success": True, "message": "Transcript updated successfully"}
