"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import secrets
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from ambient_frames.database import Base


BOOKING_STATUSES = ("unread", "read", "contacted")


def generate_id() -> str:
    """Short URL-safe unique identifier for new rows."""
    return secrets.token_urlsafe(15)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Admin(Base):
    """
    Admin account for the dashboard.
    Passwords are stored as bcrypt hashes only.
    """
    __tablename__ = "admins"

    id = Column(String, primary_key=True, default=generate_id)
    username = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Booking(Base):
    """
    Booking inquiry submitted from the public form.
    Only `status` is mutated after creation.
    """
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_created_at", "created_at"),)

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    event_type = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="unread")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Event(Base):
    """Photographed event that photos are uploaded against."""
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    date = Column(String, nullable=False)
    location = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Photo(Base):
    """
    Photo original stored in object storage.
    `event_id` is empty for face-search scans.
    """
    __tablename__ = "photos"
    __table_args__ = (Index("ix_photos_uploaded_at", "uploaded_at"),)

    id = Column(String, primary_key=True, default=generate_id)
    event_id = Column(String, ForeignKey("events.id"), nullable=True, index=True)
    url = Column(String, nullable=False)
    storage_key = Column(String, nullable=False)
    original_name = Column(String, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
