"""
Database Schemas

MongoDB collection schemas and request bodies, defined as Pydantic models.

Each collection model is named after its collection:
- User -> "user" collection
- Trip -> "trip" collection

Documents are stored with camelCase keys (``tripName``, ``createdAt``) so
they can be returned to the frontend as-is.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from date_utils import parse_optional_timestamp, utc_now

DEFAULT_ROLE = "user"


class Accommodation(str, Enum):
    HOTEL = "Hotel"
    HOSTEL = "Hostel"
    AIRBNB = "Airbnb"
    RESORT = "Resort"
    OTHER = "Other"


class Transport(str, Enum):
    PLANE = "Plane"
    CAR = "Car"
    TRAIN = "Train"
    BUS = "Bus"
    SHIP = "Ship"


class Activity(str, Enum):
    SIGHTSEEING = "Sightseeing"
    OUTDOORS = "Outdoors"
    ADVENTURE = "Adventure"
    RELAXATION = "Relaxation"
    SHOPPING = "Shopping"
    DINING = "Dining"


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


NormalizedEmail = Annotated[str, BeforeValidator(normalize_email)]
Timestamp = Annotated[datetime, BeforeValidator(parse_optional_timestamp)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# ----------------------
# Collections
# ----------------------

class User(CamelModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., description="Full name")
    email: NormalizedEmail = Field(..., description="Email address, stored lower-cased")
    password: str = Field(..., description="Salted password hash")
    role: str = Field(DEFAULT_ROLE, description="Free-form role label, e.g. user or admin")
    created_at: datetime = Field(default_factory=utc_now)


class Trip(CamelModel):
    """
    Trips saved by users. Collection name: "trip"

    ``user_email`` references a User by value only; it is not checked.
    """
    user_email: NormalizedEmail = Field(..., min_length=1, description="Owner email")
    trip_name: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: Timestamp
    end_date: Timestamp
    people: int = Field(..., ge=1, description="Party size")
    accommodation: Accommodation
    transport: Transport
    budget: float = Field(0, ge=0, allow_inf_nan=False)
    activities: List[Activity] = Field(default_factory=list)
    created_at: Timestamp = Field(default_factory=utc_now)


# ----------------------
# Request bodies
# ----------------------

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: str = DEFAULT_ROLE

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> Any:
        return _blank_to_none(value) or DEFAULT_ROLE


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[str] = None

    @field_validator("name", "email", "role", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_document_patch(self) -> Dict[str, Any]:
        patch = self.model_dump(exclude_none=True)
        if "email" in patch:
            patch["email"] = normalize_email(patch["email"])
        return patch


class TripFields(CamelModel):
    """Trip attributes accepted from clients, all optional at parse time."""

    trip_name: Optional[str] = None
    destination: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    people: Optional[int] = Field(None, ge=1)
    accommodation: Optional[Accommodation] = None
    transport: Optional[Transport] = None
    budget: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    activities: Optional[List[Activity]] = None

    @field_validator("trip_name", "destination", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return _blank_to_none(value)

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_optional_timestamp(value)

    @field_validator("people", "accommodation", "transport", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("budget", mode="before")
    @classmethod
    def _parse_budget(cls, value: Any) -> Any:
        # Anything that is not a number counts as no budget.
        if value is None or isinstance(value, bool):
            return None
        try:
            budget = float(value)
        except (TypeError, ValueError):
            return 0.0
        return budget if math.isfinite(budget) else 0.0

    @field_validator("activities", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @field_validator("activities")
    @classmethod
    def _dedupe(cls, value: Optional[List[Activity]]) -> Optional[List[Activity]]:
        if value is None:
            return None
        return list(dict.fromkeys(value))

    def to_document_patch(self) -> Dict[str, Any]:
        """Map the fields that were sent onto stored Trip keys."""
        mapping = {
            "trip_name": "tripName",
            "destination": "destination",
            "from_date": "startDate",
            "to_date": "endDate",
            "people": "people",
            "accommodation": "accommodation",
            "transport": "transport",
            "budget": "budget",
            "activities": "activities",
        }
        patch = {}
        for field, key in mapping.items():
            value = getattr(self, field)
            if value is not None:
                patch[key] = value
        return patch


class TripCreateRequest(TripFields):
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: Any) -> Any:
        return _blank_to_none(normalize_email(value))

    def missing_fields(self) -> List[str]:
        required = (("email", self.email), ("tripName", self.trip_name), ("destination", self.destination))
        return [name for name, value in required if not value]

    def to_trip(self) -> Trip:
        """Build the stored Trip, applying schema defaults and constraints."""
        fields = self.to_document_patch()
        fields["userEmail"] = self.email
        return Trip.model_validate(fields)


class TripUpdateRequest(TripFields):
    pass
