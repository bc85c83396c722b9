"""
Pydantic schemas for request and response data validation.
Field names are exposed to the frontend in camelCase.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Optional, List, Literal, Union


BookingStatus = Literal["unread", "read", "contacted"]


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts snake_case input and ORM objects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be empty")
    return value.strip()


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


# Auth

class LoginRequest(BaseModel):
    username: str
    password: str


class SessionClaims(CamelModel):
    """Payload carried in the signed session cookie."""
    username: str
    expires_at: int  # epoch milliseconds


# Bookings

class BookingCreate(CamelModel):
    """Public booking form submission. No field is mandatory."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    event_type: Optional[str] = None
    message: Optional[str] = None


class BookingResponse(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    event_type: Optional[str] = None
    message: Optional[str] = None
    status: BookingStatus
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v):
        return _as_utc(v)


class BookingStatusUpdate(CamelModel):
    id: str
    status: BookingStatus

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        return _require_text(v)


# Events and photos

class EventCreate(CamelModel):
    name: str
    date: str
    location: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("name", "date")
    @classmethod
    def validate_required(cls, v):
        return _require_text(v)


class EventResponse(CamelModel):
    id: str
    name: str
    slug: str
    date: str
    location: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v):
        return _as_utc(v)


class PhotoResponse(CamelModel):
    id: str
    event_id: Optional[str] = None
    url: str
    storage_key: str
    original_name: Optional[str] = None
    uploaded_at: datetime

    @field_validator("uploaded_at")
    @classmethod
    def validate_uploaded_at(cls, v):
        return _as_utc(v)


# Image configuration

class ImageRef(CamelModel):
    """Currently active remote image for one page slot."""
    url: str
    public_id: str


class ImageConfigUpdate(CamelModel):
    """
    Request schema for POST /api/admin/images/sync.
    All four fields are required and non-empty.
    """
    section: str
    image_id: str
    url: str
    public_id: str

    @field_validator("section", "image_id", "url", "public_id")
    @classmethod
    def validate_required(cls, v):
        return _require_text(v)


# Gallery / projects documents

class GalleryItem(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    title: str = ""
    description: Optional[str] = None
    category: str = ""
    image: str = ""
    public_id: Optional[str] = None


class ProjectDetails(CamelModel):
    model_config = ConfigDict(extra="allow")

    client: str = ""
    service: str = ""
    deliverables: str = ""


class ProjectItem(CamelModel):
    model_config = ConfigDict(extra="allow")

    id: Union[str, int]
    title: str = ""
    category: str = ""
    location: str = ""
    year: str = ""
    image: str = ""
    size: Literal["large", "medium", "small"] = "medium"
    story: str = ""
    process: str = ""
    details: ProjectDetails = Field(default_factory=ProjectDetails)


class GallerySaveRequest(BaseModel):
    images: List[GalleryItem]


class ProjectsSaveRequest(BaseModel):
    projects: List[ProjectItem]
