"""
Background scheduler for periodic tasks.

This module manages background jobs that run on a schedule:
- Cleanup expired sessions: clears stored refresh tokens whose expiry has
  passed, every SESSION_CLEANUP_INTERVAL_HOURS
"""

from datetime import datetime, timezone
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session
from vidanalytica.core.config import settings
from vidanalytica.core.database import SessionLocal
from vidanalytica.core.security import get_token_expiry
from vidanalytica.models.user import User
import logging

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def clear_expired_sessions(db: Session, now: Optional[datetime] = None) -> int:
    """
    Clear refresh tokens that can no longer be exchanged.

    Tokens past their expiry and unreadable tokens are both cleared.
    Returns the number of users cleared.
    """
    now = now or datetime.now(timezone.utc)
    cleared = 0
    users = db.query(User).filter(User.refresh_token.isnot(None)).all()
    for user in users:
        expiry = get_token_expiry(user.refresh_token)
        if expiry is None or expiry <= now:
            user.refresh_token = None
            cleared += 1
    if cleared:
        db.commit()
    return cleared


def cleanup_expired_sessions_job():
    """Background job wrapper around clear_expired_sessions"""
    db = SessionLocal()
    try:
        cleared = clear_expired_sessions(db)
        if cleared > 0:
            logger.info(f"Session cleanup completed: Cleared {cleared} expired refresh tokens")
        else:
            logger.info("Session cleanup completed: No expired refresh tokens found")
    except Exception as e:
        logger.error(f"Error in cleanup_expired_sessions_job: {str(e)}")
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    """
    Start the background scheduler.

    This should be called when the FastAPI app starts.
    """
    if not scheduler.running:
        scheduler.add_job(
            cleanup_expired_sessions_job,
            trigger=IntervalTrigger(hours=settings.SESSION_CLEANUP_INTERVAL_HOURS),
            id="cleanup_expired_sessions",
            name="Cleanup expired sessions",
            replace_existing=True
        )

        scheduler.start()
        logger.info(
            "Background scheduler started. Session cleanup scheduled to run every "
            f"{settings.SESSION_CLEANUP_INTERVAL_HOURS} hours."
        )


def stop_scheduler():
    """
    Stop the background scheduler.

    This should be called when the FastAPI app shuts down.
    """
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped.")
