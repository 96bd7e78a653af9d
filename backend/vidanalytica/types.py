from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserPreferences(CamelModel):
    """
    Dashboard settings for one user.

    Stored as a JSON document on the user row. Unknown keys in a stored
    document are ignored so old rows keep loading after fields change.
    """
    model_config = ConfigDict(extra="ignore")

    transcription_service: Literal["whisper", "assembly", "rev"] = "whisper"
    auto_transcript: bool = True
    auto_ideas: bool = True
    sync_frequency: Literal["hourly", "daily", "weekly", "manual"] = "daily"
    email_notifications: bool = True
    process_complete_notifications: bool = True
    error_notifications: bool = True
    ideas_prompt: str = Field(
        default=(
            "Extract the main concepts, actionable insights, content suggestions "
            "and key takeaways from this transcript."
        ),
        max_length=4000,
    )
    default_export_format: Literal["txt", "pdf", "csv"] = "txt"
    include_timestamps: bool = True

    @classmethod
    def from_stored(cls, document: Optional[dict]) -> "UserPreferences":
        return cls.model_validate(document or {})

    def updated(self, changes: "UserPreferencesUpdate") -> "UserPreferences":
        """Return a copy with every field set in `changes` applied"""
        merged = self.model_dump()
        merged.update(changes.model_dump(exclude_unset=True, exclude_none=True))
        return UserPreferences.model_validate(merged)


class UserPreferencesUpdate(CamelModel):
    transcription_service: Optional[Literal["whisper", "assembly", "rev"]] = None
    auto_transcript: Optional[bool] = None
    auto_ideas: Optional[bool] = None
    sync_frequency: Optional[Literal["hourly", "daily", "weekly", "manual"]] = None
    email_notifications: Optional[bool] = None
    process_complete_notifications: Optional[bool] = None
    error_notifications: Optional[bool] = None
    ideas_prompt: Optional[str] = Field(default=None, max_length=4000)
    default_export_format: Optional[Literal["txt", "pdf", "csv"]] = None
    include_timestamps: Optional[bool] = None
