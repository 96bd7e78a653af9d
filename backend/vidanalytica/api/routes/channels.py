import re
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.errors import NotFoundError, ValidationError
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.models.user import User
from vidanalytica.models.channel import Channel
from vidanalytica.types import CamelModel

router = APIRouter(prefix="/channels", tags=["channels"])

CHANNEL_NOT_FOUND_MESSAGE = "Channel not found"

# youtube.com/@handle, youtube.com/c/name, youtube.com/channel/UC..., youtube.com/user/name
YOUTUBE_CHANNEL_URL = re.compile(
    r"^(?:https?://)?(?:www\.|m\.)?youtube\.com/"
    r"(?:@(?P<handle>[\w.\-]+)|(?:c|channel|user)/(?P<path>[\w.\-]+))/?$",
    re.IGNORECASE,
)


class ChannelCreate(CamelModel):
    url: str


class ChannelResponse(CamelModel):
    id: int
    name: str
    handle: str
    url: str
    avatar: Optional[str] = None
    subscriber_count: int
    total_videos: int
    videos_analyzed: int
    last_sync: Optional[datetime] = None
    status: str
    created_at: Optional[datetime] = None


class ChannelListResponse(CamelModel):
    channels: List[ChannelResponse]


class ChannelCreateResponse(CamelModel):
    success: bool
    message: str
    channel: ChannelResponse


class ActionResponse(CamelModel):
    success: bool
    message: str


def parse_channel_url(url: str) -> tuple[str, str]:
    """Return (normalized_url, handle) for a YouTube channel URL"""
    match = YOUTUBE_CHANNEL_URL.match(url.strip())
    if not match:
        raise ValidationError("Please enter a valid YouTube channel URL")
    handle = match.group("handle") or match.group("path")
    if match.group("handle"):
        normalized = f"https://www.youtube.com/@{handle}"
    else:
        normalized = url.strip().rstrip("/")
        if not normalized.lower().startswith("http"):
            normalized = f"https://{normalized}"
    return normalized, f"@{handle}"


def get_owned_channel(db: Session, channel_id: int, user: User) -> Channel:
    channel = db.query(Channel).filter(
        Channel.id == channel_id,
        Channel.user_id == user.id
    ).first()
    if not channel:
        raise NotFoundError(CHANNEL_NOT_FOUND_MESSAGE)
    return channel


@router.get("/", response_model=ChannelListResponse)
async def list_channels(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List channels tracked by the current user"""
    channels = db.query(Channel).filter(
        Channel.user_id == current_user.id
    ).order_by(Channel.created_at.desc(), Channel.id.desc()).all()
    return {"channels": channels}


@router.post("/", response_model=ChannelCreateResponse, status_code=201)
async def add_channel(
    data: ChannelCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Start tracking a channel. Metadata is filled in by a later sync."""
    url, handle = parse_channel_url(data.url)

    existing = db.query(Channel).filter(
        Channel.user_id == current_user.id,
        Channel.url == url
    ).first()
    if existing:
        raise ValidationError("Channel already added")

    channel = Channel(
        user_id=current_user.id,
        name=handle.lstrip("@"),
        handle=handle,
        url=url,
        status="active",
    )
    db.add(channel)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Channel already added")
    db.refresh(channel)

    return {
        "success": True,
        "message": "Channel added successfully",
        "channel": channel,
    }


@router.delete("/{channel_id}", response_model=ActionResponse)
async def delete_channel(
    channel_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Stop tracking a channel; its videos, transcripts and ideas go with it"""
    channel = get_owned_channel(db, channel_id, current_user)
    db.delete(channel)
    db.commit()
    return {"success": True, "message": "Channel deleted successfully"}


@router.post("/{channel_id}/sync", response_model=ActionResponse)
async def sync_channel(
    channel_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark a channel for syncing"""
    channel = get_owned_channel(db, channel_id, current_user)
    channel.status = "syncing"
    db.commit()
    return {"success": True, "message": "Channel sync started"}
