from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vidanalytica.core.database import Base


class Transcript(Base):
    __tablename__ = "transcripts"

    id = Column(Integer, primary_key=True, index=True)
    # One transcript per video
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, unique=True)
    content = Column(Text, nullable=False, default="")
    # List of {"start": float, "end": float, "text": str}
    timestamps = Column(JSON, nullable=False, default=list)
    status = Column(String, default="pending", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    video = relationship("Video", back_populates="transcript")
