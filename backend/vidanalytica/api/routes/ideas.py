import math
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
from pydantic import Field
from sqlalchemy import or_
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.errors import NotFoundError, ValidationError
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.models.user import User
from vidanalytica.models.channel import Channel
from vidanalytica.models.video import Video
from vidanalytica.models.idea import Idea, IDEA_CATEGORIES
from vidanalytica.services.analytics_service import analytics_service
from vidanalytica.types import CamelModel
from vidanalytica.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginate

router = APIRouter(prefix="/ideas", tags=["ideas"])

IDEA_NOT_FOUND_MESSAGE = "Idea not found"


class IdeaResponse(CamelModel):
    id: int
    video_id: int
    video_title: str
    channel_name: str
    category: str
    title: str
    description: Optional[str] = None
    tags: List[str]
    rating: int
    is_favorite: bool
    created_at: Optional[datetime] = None


class IdeaListResponse(CamelModel):
    ideas: List[IdeaResponse]
    total: int
    page: int
    total_pages: int


class RatingUpdate(CamelModel):
    rating: int = Field(..., ge=1, le=5)


class FavoriteUpdate(CamelModel):
    is_favorite: bool


class ActionResponse(CamelModel):
    success: bool
    message: str


def owned_ideas(db: Session, user: User):
    return db.query(Idea).join(Video).join(Channel).filter(Channel.user_id == user.id)


def filtered_ideas(db: Session, user: User, video_id: Optional[int] = None,
                   channel_id: Optional[int] = None, category: Optional[str] = None,
                   search: Optional[str] = None):
    if category and category not in IDEA_CATEGORIES:
        raise ValidationError(f"Unknown category '{category}'")

    query = owned_ideas(db, user)
    if video_id is not None:
        query = query.filter(Idea.video_id == video_id)
    if channel_id is not None:
        query = query.filter(Video.channel_id == channel_id)
    if category:
        query = query.filter(Idea.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Idea.title.ilike(pattern), Idea.description.ilike(pattern)))
    return query.order_by(Idea.created_at.desc(), Idea.id.desc())


def serialize_idea(idea: Idea) -> IdeaResponse:
    return IdeaResponse(
        id=idea.id,
        video_id=idea.video_id,
        video_title=idea.video.title,
        channel_name=idea.video.channel.name,
        category=idea.category,
        title=idea.title,
        description=idea.description,
        tags=idea.tags or [],
        rating=idea.rating,
        is_favorite=idea.is_favorite,
        created_at=idea.created_at,
    )


def get_owned_idea(db: Session, idea_id: int, user: User) -> Idea:
    idea = owned_ideas(db, user).filter(Idea.id == idea_id).first()
    if not idea:
        raise NotFoundError(IDEA_NOT_FOUND_MESSAGE)
    return idea


@router.get("/", response_model=IdeaListResponse)
async def list_ideas(
    video_id: Optional[int] = Query(None, alias="videoId"),
    channel_id: Optional[int] = Query(None, alias="channelId"),
    category: Optional[str] = None,
    tags: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = filtered_ideas(db, current_user, video_id, channel_id, category, search)
    if tags:
        # Tags live in a JSON column, so match them after loading
        wanted = set(tags)
        matching = [idea for idea in query.all() if wanted.intersection(idea.tags or [])]
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        start = (page - 1) * limit
        total = len(matching)
        return IdeaListResponse(
            ideas=[serialize_idea(i) for i in matching[start:start + limit]],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
        )

    result = paginate(query, page, limit)
    return IdeaListResponse(
        ideas=[serialize_idea(i) for i in result["items"]],
        total=result["total"],
        page=result["page"],
        total_pages=result["total_pages"],
    )


@router.get("/export")
async def export_ideas(
    format: str = "csv",
    video_id: Optional[int] = Query(None, alias="videoId"),
    channel_id: Optional[int] = Query(None, alias="channelId"),
    category: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Download the user's ideas as CSV"""
    if format != "csv":
        raise ValidationError("Only csv export is supported")

    ideas = filtered_ideas(db, current_user, video_id, channel_id, category).all()
    payload = analytics_service.ideas_to_csv([serialize_idea(i) for i in ideas])
    return Response(
        content=payload,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="ideas.csv"'},
    )


@router.put("/{idea_id}/rating", response_model=ActionResponse)
async def rate_idea(
    idea_id: int,
    data: RatingUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    idea = get_owned_idea(db, idea_id, current_user)
    idea.rating = data.rating
    db.commit()
    return {"success": True, "message": "Rating updated successfully"}


@router.put("/{idea_id}/favorite", response_model=ActionResponse)
async def favorite_idea(
    idea_id: int,
    data: FavoriteUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    idea = get_owned_idea(db, idea_id, current_user)
    idea.is_favorite = data.is_favorite
    db.commit()
    message = "Added to favorites" if data.is_favorite else "Removed from favorites"
    return {"success": True, "message": message}
