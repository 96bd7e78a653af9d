from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vidanalytica.core.database import Base

IDEA_CATEGORIES = ("main-concept", "actionable-insight", "content-suggestion", "key-takeaway")


class Idea(Base):
    """An idea extracted from a video's transcript"""
    __tablename__ = "ideas"

    id = Column(Integer, primary_key=True, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    category = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    rating = Column(Integer, default=0, nullable=False)  # 0 means unrated
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    video = relationship("Video", back_populates="ideas")
