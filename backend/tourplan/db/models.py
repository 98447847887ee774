"""SQLAlchemy ORM models for persisted trips and preferences."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Trip(Base):
    """Trip table - accepted tour plans."""

    __tablename__ = "trip"
    __table_args__ = (Index("idx_trip_user_created", "user_id", "created_at"),)

    trip_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    destinations: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    itinerary: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False)
    generated_by: Mapped[str] = mapped_column(String(32), nullable=False, default="ai")
    ai_metadata: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class UserPreference(Base):
    """User preference scores table."""

    __tablename__ = "user_preference"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    history: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    adventure: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    nature: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    relaxation: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
