from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.api.routes.channels import get_owned_channel
from vidanalytica.models.user import User
from vidanalytica.services.analytics_service import analytics_service
from vidanalytica.types import CamelModel

router = APIRouter(prefix="/analytics", tags=["analytics"])


class DashboardStats(CamelModel):
    total_channels: int
    total_videos: int
    total_ideas: int
    total_transcripts: int


class DashboardResponse(CamelModel):
    stats: DashboardStats


class ChannelMetrics(CamelModel):
    average_views: float
    engagement_rate: float
    upload_frequency: float
    total_videos: int
    transcribed_videos: int
    ideas_generated: int


class PerformancePoint(CamelModel):
    date: str
    views: int
    engagement: float


class TopicShare(CamelModel):
    topic: str
    count: int
    percentage: int


class ChannelAnalytics(CamelModel):
    channel_id: int
    channel_name: str
    metrics: ChannelMetrics
    performance_data: List[PerformancePoint]
    top_topics: List[TopicShare]


class ChannelAnalyticsResponse(CamelModel):
    analytics: ChannelAnalytics


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Totals for the dashboard overview"""
    return {"stats": analytics_service.dashboard_stats(db, current_user)}


@router.get("/channels/{channel_id}", response_model=ChannelAnalyticsResponse)
async def get_channel_analytics(
    channel_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    channel = get_owned_channel(db, channel_id, current_user)
    return {"analytics": analytics_service.channel_analytics(db, channel)}
