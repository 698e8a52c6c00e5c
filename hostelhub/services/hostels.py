"""Hostel payloads and the location normalization shared by create and update."""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from .currency import format_money


class LocationDetails(BaseModel):
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""


class GeoPoint(BaseModel):
    latitude: float
    longitude: float


class HostelContact(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class HostelIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    location: Union[LocationDetails, str, None] = None
    price_per_year: Optional[float] = Field(default=None, ge=0)
    room_types: list[str] = []
    available_rooms: int = Field(default=0, ge=0)
    amenities: list[str] = []
    contact: Optional[HostelContact] = None
    rules: Optional[str] = None
    geolocation: Optional[GeoPoint] = None
    image_urls: list[str] = []


class HostelUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Union[LocationDetails, str, None] = None
    price_per_year: Optional[float] = Field(default=None, ge=0)
    room_types: Optional[list[str]] = None
    available_rooms: Optional[int] = Field(default=None, ge=0)
    amenities: Optional[list[str]] = None
    contact: Optional[HostelContact] = None
    rules: Optional[str] = None
    geolocation: Optional[GeoPoint] = None
    # Images to keep; None leaves the current list untouched
    existing_images: Optional[list[str]] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        # Omitting the name keeps it; an explicit null would clear a required column
        if v is None:
            raise ValueError("name cannot be null")
        return v


class HostelSummary(BaseModel):
    id: int
    name: str
    location: str = ""
    image_url: Optional[str] = None
    available_rooms: int = 0


class HostelDetail(BaseModel):
    id: int
    business_id: int
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    location_details: Optional[LocationDetails] = None
    price_per_year: Optional[float] = None
    price_label: Optional[str] = None
    room_types: list[str] = []
    available_rooms: int = 0
    amenities: list[str] = []
    contact: Optional[HostelContact] = None
    rules: Optional[str] = None
    image_urls: list[str] = []
    image_url: Optional[str] = None
    geolocation: Optional[GeoPoint] = None
    agent_ids: list[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def normalize_location(value) -> tuple[Optional[str], Optional[dict]]:
    """
    Accept a structured location or an already-flattened string.

    Returns ``(flat, details)``: the flat form is "address, city, state" (empty
    parts skipped) and details is the structured dict, or None when the input
    was a plain string.
    """
    if value is None:
        return None, None
    if isinstance(value, str):
        return value.strip(), None
    if isinstance(value, dict):
        value = LocationDetails(**value)
    parts = [p.strip() for p in (value.address, value.city, value.state) if p and p.strip()]
    return ", ".join(parts), value.model_dump()


def price_label(price_per_year, currency_code: str | None = None) -> Optional[str]:
    if price_per_year is None:
        return None
    return f"{format_money(price_per_year, currency_code)}/year"
