from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vidanalytica.core.database import Base


class Channel(Base):
    """A YouTube channel tracked by one user"""
    __tablename__ = "channels"
    __table_args__ = (UniqueConstraint("user_id", "url", name="uq_channels_user_url"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    handle = Column(String, nullable=False)
    url = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    subscriber_count = Column(Integer, default=0, nullable=False)
    total_videos = Column(Integer, default=0, nullable=False)
    videos_analyzed = Column(Integer, default=0, nullable=False)
    # active | syncing | error
    status = Column(String, default="active", nullable=False)
    last_sync = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", backref="channels")
    videos = relationship("Video", back_populates="channel", cascade="all, delete-orphan")
