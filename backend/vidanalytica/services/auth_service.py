"""
Session lifecycle: registration, login, refresh-token rotation and logout.

Each user holds at most one live refresh token (User.refresh_token).
Login and refresh overwrite it, logout clears it, and a presented refresh
token is only honored while it still equals the stored value.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from vidanalytica.core.config import settings
from vidanalytica.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ServiceUnavailableError,
    ValidationError,
)
from vidanalytica.core.events import get_auth_events
from vidanalytica.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    get_password_hash,
    verify_password,
)
from vidanalytica.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Email or password is incorrect"
MISSING_CREDENTIALS_MESSAGE = "Email and password are required"
AUTH_UNAVAILABLE_MESSAGE = "Authentication service unavailable"
REFRESH_REQUIRED_MESSAGE = "Refresh token is required"
REFRESH_EXPIRED_MESSAGE = "Refresh token has expired"
REFRESH_INVALID_MESSAGE = "Invalid refresh token"
DUPLICATE_EMAIL_MESSAGE = "Email already registered"
LOGOUT_MESSAGE = "User logged out successfully."

# Placeholder identity used by the development login fallback
DEV_USER_ID = 0
DEV_USER_NAME = "Development User"

# Hash verified against when the email is unknown
_UNKNOWN_USER_HASH = get_password_hash("unknown-user-placeholder")


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class LoginResult:
    user: User
    tokens: TokenPair


def issue_token_pair(user: User) -> TokenPair:
    subject = str(user.id)
    return TokenPair(
        access_token=create_access_token(subject, email=user.email),
        refresh_token=create_refresh_token(subject, email=user.email),
    )


class AuthService:
    @staticmethod
    def register(db: Session, email: Optional[str], password: Optional[str],
                 name: Optional[str] = None) -> User:
        """Create a user. Does not issue tokens; the caller logs in afterwards."""
        events = get_auth_events()
        if not email or not password:
            events.failed("register", MISSING_CREDENTIALS_MESSAGE)
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE)

        email = email.strip().lower()
        if db.query(User).filter(User.email == email).first():
            events.failed("register", DUPLICATE_EMAIL_MESSAGE)
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name,
            is_active=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Two registrations for the same email raced past the check above
            db.rollback()
            events.failed("register", DUPLICATE_EMAIL_MESSAGE)
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE)
        db.refresh(user)

        events.succeeded("register", f"Registered {user.email}")
        return user

    @staticmethod
    def login(db: Session, email: Optional[str], password: Optional[str]) -> LoginResult:
        events = get_auth_events()
        if not email or not password:
            events.failed("login", MISSING_CREDENTIALS_MESSAGE)
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE)

        email = email.strip().lower()
        try:
            user = db.query(User).filter(User.email == email).first()
        except OperationalError as e:
            db.rollback()
            logger.error(f"Login error: {e.orig}")
            if settings.dev_auth_fallback_enabled:
                logger.warning("Database unreachable; issuing development placeholder session")
                return AuthService._placeholder_login(email)
            events.failed("login", AUTH_UNAVAILABLE_MESSAGE)
            raise ServiceUnavailableError(AUTH_UNAVAILABLE_MESSAGE)

        # Unknown email and wrong password share one message and one hash check
        hashed_password = user.hashed_password if user else _UNKNOWN_USER_HASH
        if not verify_password(password, hashed_password) or user is None:
            events.failed("login", INVALID_CREDENTIALS_MESSAGE)
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_active:
            events.failed("login", "User account is inactive")
            raise AuthorizationError("User account is inactive", status_code=403)

        tokens = issue_token_pair(user)
        user.refresh_token = tokens.refresh_token
        user.last_login_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(user)

        events.succeeded("login", f"Logged in {user.email}")
        return LoginResult(user=user, tokens=tokens)

    @staticmethod
    def _placeholder_login(email: str) -> LoginResult:
        now = datetime.now(timezone.utc)
        # Transient object, never added to a session
        user = User(
            id=DEV_USER_ID,
            email=email,
            name=DEV_USER_NAME,
            is_active=True,
            created_at=now,
            last_login_at=now,
        )
        return LoginResult(user=user, tokens=issue_token_pair(user))

    @staticmethod
    def refresh(db: Session, refresh_token: Any) -> TokenPair:
        """
        Exchange a refresh token for a new pair, rotating the stored token.

        A token is good for exactly one exchange: after rotation the old
        value no longer matches what is stored and is rejected.
        """
        events = get_auth_events()
        if refresh_token is None or refresh_token == "":
            events.failed("refresh", REFRESH_REQUIRED_MESSAGE)
            raise AuthorizationError(REFRESH_REQUIRED_MESSAGE, status_code=401)

        if not isinstance(refresh_token, str):
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)

        try:
            payload = decode_refresh_token(refresh_token)
        except TokenExpiredError as e:
            logger.info(f"Token refresh error: {e}")
            events.failed("refresh", REFRESH_EXPIRED_MESSAGE)
            raise AuthorizationError(REFRESH_EXPIRED_MESSAGE, status_code=403)
        except TokenInvalidError as e:
            logger.info(f"Token refresh error: {e}")
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)

        user = None
        try:
            user = db.get(User, int(payload["sub"]))
        except (ValueError, TypeError):
            pass

        if user is None:
            logger.info(f"Token refresh error: no user for subject {payload.get('sub')!r}")
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)

        if not user.is_active:
            logger.info(f"Token refresh error: user {user.id} is inactive")
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)

        if user.refresh_token != refresh_token:
            # Rotated out, revoked by logout, or never issued by us
            logger.warning(f"Refresh token reuse rejected for user {user.id}")
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)

        tokens = issue_token_pair(user)
        # Compare-and-swap: a token rotates at most once
        rotated = (
            db.query(User)
            .filter(User.id == user.id, User.refresh_token == refresh_token)
            .update({User.refresh_token: tokens.refresh_token}, synchronize_session=False)
        )
        if rotated == 0:
            db.rollback()
            logger.warning(f"Refresh token reuse rejected for user {user.id}")
            events.failed("refresh", REFRESH_INVALID_MESSAGE)
            raise AuthorizationError(REFRESH_INVALID_MESSAGE, status_code=403)
        db.commit()

        events.succeeded("refresh", f"Rotated session for {user.email}")
        return tokens

    @staticmethod
    def logout(db: Session, email: Optional[str]) -> str:
        """Clear the stored refresh token. Succeeds whether or not the user exists."""
        if email:
            user = db.query(User).filter(User.email == email.strip().lower()).first()
            if user:
                user.refresh_token = None
                db.commit()
        get_auth_events().succeeded("logout", LOGOUT_MESSAGE)
        return LOGOUT_MESSAGE


auth_service = AuthService()
