from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.errors import AuthorizationError
from vidanalytica.core.security import decode_access_token
from vidanalytica.models.user import User

# OAuth2 password bearer scheme - extracts token from Authorization header
# tokenUrl tells FastAPI where to find the login endpoint for Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def _credentials_error() -> AuthorizationError:
    return AuthorizationError(
        "Could not validate credentials",
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_payload(token: str | None = Depends(oauth2_scheme)) -> dict:
    """
    Verify the bearer access token and return its claims.

    Self-contained: signature, expiry and token type are checked without
    touching the database.
    """
    if token is None:
        raise _credentials_error()

    payload = decode_access_token(token)
    if payload is None:
        raise _credentials_error()
    return payload


async def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the user named by a verified access token.

    Used by route handlers that need the acting user. Raises 401 if the
    user was deleted after the token was issued.
    """
    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise _credentials_error()

    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error()

    # Check if user account is active
    if not user.is_active:
        raise AuthorizationError("User account is inactive", status_code=403)

    return user
