from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, BigInteger
from sqlalchemy.orm import relationship
from vidanalytica.core.database import Base

# Shared by transcript_status and ideas_status
PROCESSING_STATUSES = ("pending", "processing", "completed", "failed")


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    channel_id = Column(Integer, ForeignKey("channels.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    thumbnail = Column(String, nullable=True)
    duration = Column(String, nullable=True)  # e.g. "15:42"
    views = Column(BigInteger, default=0, nullable=False)
    likes = Column(BigInteger, default=0, nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=True)
    url = Column(String, nullable=True)
    transcript_status = Column(String, default="pending", nullable=False)
    ideas_status = Column(String, default="pending", nullable=False)

    channel = relationship("Channel", back_populates="videos")
    transcript = relationship(
        "Transcript", back_populates="video", uselist=False, cascade="all, delete-orphan"
    )
    ideas = relationship("Idea", back_populates="video", cascade="all, delete-orphan")
