from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.models.user import User
from vidanalytica.types import UserPreferences, UserPreferencesUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=UserPreferences)
async def get_settings(current_user: User = Depends(get_current_user)):
    """Current dashboard settings, defaults filled in"""
    return UserPreferences.from_stored(current_user.preferences)


@router.put("/", response_model=UserPreferences)
async def update_settings(
    changes: UserPreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Apply a partial settings update and return the result"""
    preferences = UserPreferences.from_stored(current_user.preferences).updated(changes)
    # Assign a new dict so SQLAlchemy sees the JSON column change
    current_user.preferences = preferences.model_dump()
    db.commit()
    return preferences
