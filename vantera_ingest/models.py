# vantera_ingest/models.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


# -----------------------------
# Core enums
# -----------------------------
class ImportRunStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class ListingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    ARCHIVED = "ARCHIVED"


class Visibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class Verification(str, enum.Enum):
    SELF_REPORTED = "SELF_REPORTED"
    VERIFIED = "VERIFIED"


# -----------------------------
# Models
# -----------------------------
class City(Base):
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(80), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(120))

    country: Mapped[str | None] = mapped_column(String(80), nullable=True)
    region: Mapped[str | None] = mapped_column(String(80), nullable=True)
    tz: Mapped[str | None] = mapped_column(String(60), nullable=True)

    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    listings: Mapped[list["Listing"]] = relationship(back_populates="city")


class Listing(Base):
    __tablename__ = "listings"
    __table_args__ = (
        # Turn a dedup read-then-write race into an IntegrityError.
        UniqueConstraint("source", "source_id", name="uq_listing_source_id"),
        UniqueConstraint("address", "city_id", name="uq_listing_address_city"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True)

    source: Mapped[str] = mapped_column(String(40), index=True)
    source_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), index=True)
    city: Mapped[City] = relationship(back_populates="listings")

    status: Mapped[ListingStatus] = mapped_column(Enum(ListingStatus), default=ListingStatus.LIVE, index=True)
    visibility: Mapped[Visibility] = mapped_column(Enum(Visibility), default=Visibility.PUBLIC)
    verification: Mapped[Verification] = mapped_column(Enum(Verification), default=Verification.SELF_REPORTED)

    title: Mapped[str] = mapped_column(String(255))
    headline: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(120), nullable=True)

    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_hidden: Mapped[bool] = mapped_column(Boolean, default=True)

    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    property_type: Mapped[str | None] = mapped_column(String(80), nullable=True)
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[float | None] = mapped_column(Float, nullable=True)

    built_sqft: Mapped[int | None] = mapped_column(Integer, nullable=True)
    plot_sqft: Mapped[int | None] = mapped_column(Integer, nullable=True)
    built_m2: Mapped[int | None] = mapped_column(Integer, nullable=True)
    plot_m2: Mapped[int | None] = mapped_column(Integer, nullable=True)

    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    price_confidence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    data_completeness: Mapped[int | None] = mapped_column(Integer, nullable=True)

    cover_media_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    media: Mapped[list["ListingMedia"]] = relationship(
        back_populates="listing",
        order_by="ListingMedia.sort_order",
    )


class ListingMedia(Base):
    __tablename__ = "listing_media"
    __table_args__ = (UniqueConstraint("listing_id", "url", name="uq_listing_media_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[int] = mapped_column(ForeignKey("listings.id"), index=True)
    listing: Mapped[Listing] = relationship(back_populates="media")

    url: Mapped[str] = mapped_column(String(1000))
    alt: Mapped[str | None] = mapped_column(String(255), nullable=True)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)

    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    kind: Mapped[str] = mapped_column(String(20), default="image")
    source: Mapped[str | None] = mapped_column(String(40), nullable=True)


class ImportRun(Base):
    """
    One row per ingest invocation (ATTOM properties, Realtor properties, cities).
    """
    __tablename__ = "import_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    source: Mapped[str] = mapped_column(String(40), index=True)  # attom|realtor|vantera
    scope: Mapped[str] = mapped_column(String(40))  # properties|cities
    region: Mapped[str | None] = mapped_column(String(40), nullable=True)
    market: Mapped[str | None] = mapped_column(String(120), nullable=True)

    # snapshot of the request configuration
    params: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    status: Mapped[ImportRunStatus] = mapped_column(
        Enum(ImportRunStatus), default=ImportRunStatus.RUNNING, index=True
    )

    scanned: Mapped[int] = mapped_column(Integer, default=0)
    created: Mapped[int] = mapped_column(Integer, default=0)
    skipped: Mapped[int] = mapped_column(Integer, default=0)
    errors: Mapped[int] = mapped_column(Integer, default=0)

    # [{"step": "...", "message": "..."}], capped by the reporter
    error_samples: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list)
    breakdown: Mapped[dict[str, int]] = mapped_column(JSON, default=dict)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
