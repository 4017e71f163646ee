from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.geo import coerce_coordinate
from .options import Choice, OptionList

DEFAULT_MIN_AGE = 18
DEFAULT_MAX_AGE = 99

GOALS_KEY = "connection_goals"
LEGACY_GOALS_KEY = "relationship_goals"


def _iso_or_none(value: Any) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


class Coordinates(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AgeRange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min: int = DEFAULT_MIN_AGE
    max: int = DEFAULT_MAX_AGE

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @model_validator(mode="after")
    def _order_bounds(self) -> "AgeRange":
        if self.min > self.max:
            self.min, self.max = self.max, self.min
        return self

    @property
    def narrows_default(self) -> bool:
        return self.min > DEFAULT_MIN_AGE or self.max < DEFAULT_MAX_AGE


class MatchingPreferences(BaseModel):
    """A viewer's saved matching preferences (``profiles.matching_preferences``)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    age_range: Optional[AgeRange] = None
    gender: OptionList = Field(default_factory=list)
    # Stored as ``connection_goals``; older documents may still carry ``relationship_goals``
    relationship_goals: OptionList = Field(
        default_factory=list,
        validation_alias=AliasChoices(GOALS_KEY, LEGACY_GOALS_KEY),
        serialization_alias=GOALS_KEY,
    )
    relationship_style: OptionList = Field(default_factory=list)
    sex_preferences: OptionList = Field(default_factory=list)
    family_plans: OptionList = Field(default_factory=list)
    distance: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _single_goals_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and GOALS_KEY in data and LEGACY_GOALS_KEY in data:
            data = {key: value for key, value in data.items() if key != LEGACY_GOALS_KEY}
        return data

    @field_validator("distance", mode="before")
    @classmethod
    def _positive_distance(cls, value: Any) -> Optional[float]:
        try:
            num = float(value)
        except (TypeError, ValueError):
            return None
        return num if num > 0 else None


class Profile(BaseModel):
    """A user profile document from the ``profiles`` collection."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    full_name: Optional[str] = None
    dob: Optional[str] = None
    gender_identity: Choice = None
    connection_goals: OptionList = Field(default_factory=list)
    relationship_style: OptionList = Field(default_factory=list)
    sex_preferences: OptionList = Field(default_factory=list)
    children: Choice = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    matching_preferences: Optional[MatchingPreferences] = None
    onboarding_completed: bool = False
    photos: List[str] = Field(default_factory=list)
    updated_at: Optional[str] = None

    @field_validator("full_name", "dob", "updated_at", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _iso_or_none(value)

    @field_validator("latitude", mode="before")
    @classmethod
    def _latitude(cls, value: Any) -> Optional[float]:
        return coerce_coordinate(value, limit=90)

    @field_validator("longitude", mode="before")
    @classmethod
    def _longitude(cls, value: Any) -> Optional[float]:
        return coerce_coordinate(value, limit=180)

    @field_validator("matching_preferences", mode="before")
    @classmethod
    def _preferences(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, MatchingPreferences)) else None

    @field_validator("onboarding_completed", mode="before")
    @classmethod
    def _strict_flag(cls, value: Any) -> bool:
        return value is True

    @field_validator("photos", mode="before")
    @classmethod
    def _photos(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)

    @property
    def is_discoverable(self) -> bool:
        return self.onboarding_completed and bool(self.full_name)

    @classmethod
    def from_document(cls, doc_id: str, document: dict) -> "Profile":
        return cls.model_validate({**document, "id": doc_id})


class ProfileUpdate(BaseModel):
    """Profile fields written by onboarding and the edit screens."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: Optional[str] = Field(default=None, max_length=80)
    dob: Optional[str] = None
    gender_identity: Choice = None
    connection_goals: Optional[OptionList] = None
    relationship_style: Optional[OptionList] = None
    sex_preferences: Optional[OptionList] = None
    children: Choice = None
    photos: Optional[List[str]] = Field(default=None, max_length=6)
    onboarding_completed: Optional[bool] = None


class PreferencesUpdate(BaseModel):
    """Partial update of ``matching_preferences``; unset fields are left alone."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    age_range: Optional[AgeRange] = None
    gender: Optional[OptionList] = None
    relationship_goals: Optional[OptionList] = Field(
        default=None,
        validation_alias=AliasChoices(GOALS_KEY, LEGACY_GOALS_KEY),
        serialization_alias=GOALS_KEY,
    )
    relationship_style: Optional[OptionList] = None
    sex_preferences: Optional[OptionList] = None
    family_plans: Optional[OptionList] = None
    distance: Optional[float] = Field(default=None, gt=0, le=500)


class DiscoveryResponse(BaseModel):
    profiles: List[Profile] = Field(default_factory=list)


__all__ = [
    "AgeRange",
    "Coordinates",
    "DEFAULT_MAX_AGE",
    "DEFAULT_MIN_AGE",
    "DiscoveryResponse",
    "GOALS_KEY",
    "LEGACY_GOALS_KEY",
    "MatchingPreferences",
    "PreferencesUpdate",
    "Profile",
    "ProfileUpdate",
]
