import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from vidanalytica.core.config import settings

# CryptContext handles password hashing using bcrypt
# bcrypt salts every hash, so equal passwords produce different hashes
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenExpiredError(Exception):
    """Signature was valid but the token's exp claim has passed"""


class TokenInvalidError(Exception):
    """Bad signature, malformed token, or wrong token type"""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


def _create_token(
    subject: str,
    token_type: str,
    secret: str,
    expires_delta: timedelta,
    extra_claims: Optional[dict] = None,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(extra_claims or {})
    to_encode.update({
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        # Unique per token so two tokens minted in the same second still differ
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def create_access_token(subject: str, email: Optional[str] = None,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT access token"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token(
        subject,
        ACCESS_TOKEN_TYPE,
        settings.ACCESS_TOKEN_SECRET,
        expires_delta,
        {"email": email} if email else None,
    )


def create_refresh_token(subject: str, email: Optional[str] = None,
                         expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived JWT refresh token"""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _create_token(
        subject,
        REFRESH_TOKEN_TYPE,
        settings.REFRESH_TOKEN_SECRET,
        expires_delta,
        {"email": email} if email else None,
    )


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpiredError(str(e)) from e
    except JWTError as e:
        raise TokenInvalidError(str(e)) from e

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise TokenInvalidError(f"Expected a {expected_type} token")
    return payload


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify an access token; None if invalid or expired"""
    try:
        return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE)
    except (TokenExpiredError, TokenInvalidError):
        return None


def decode_refresh_token(token: str) -> dict:
    """
    Decode and verify a refresh token.

    Raises TokenExpiredError when only the expiry check failed and
    TokenInvalidError for every other failure, so callers can report
    the two cases differently.
    """
    return _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE)


def get_token_expiry(token: str) -> Optional[datetime]:
    """Read the exp claim without verifying the signature"""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)
