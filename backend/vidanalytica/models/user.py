from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from vidanalytica.core.database import Base


class User(Base):
    """
    User model representing application users.

    Stores authentication credentials, profile information and the single
    refresh token currently allowed to be exchanged for a new session.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Email is unique and indexed for fast lookups during login
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=True)  # Optional display name
    is_active = Column(Boolean, default=True, nullable=False)
    # Current refresh token; overwritten on login/refresh, cleared on logout
    refresh_token = Column(String, nullable=True)
    # Dashboard settings document, see types.UserPreferences
    preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User {self.email}>"
