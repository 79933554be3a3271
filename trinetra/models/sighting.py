"""
Pydantic models for citizen sighting reports.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class SightingCreate(BaseModel):
    """
    Fields a citizen provides when reporting a sighting.
    Photo evidence is mandatory.
    """
    location: str = Field(..., min_length=1, max_length=300, description="Where the child was seen")
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    description: Optional[str] = Field(None, max_length=2000)
    reporter_contact: Optional[str] = Field(None, max_length=200, description="Phone or email (optional)")
    photo_url: str = Field(..., min_length=1, description="Public URL of the uploaded photo")

    class Config:
        extra = "ignore"


class Sighting(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    alert_id: str
    location: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    description: Optional[str] = None
    reporter_contact: Optional[str] = None
    reporter_id: Optional[str] = None
    photo_url: str
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"
