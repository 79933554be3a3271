"""
Pydantic models for missing-child alerts.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertStatus(str, Enum):
    """
    Alert lifecycle:
    active → resolved (authority action)
    active → inactive (administrative removal)
    """
    ACTIVE = "active"
    RESOLVED = "resolved"
    INACTIVE = "inactive"


class AlertStatusChange(str, Enum):
    """Status values an authority may set through the API."""
    RESOLVED = "resolved"


class AlertCreate(BaseModel):
    """
    Model for creating a new alert (incoming POST request).
    These are the fields an authority fills in on the alert form.
    """
    child_name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=0, le=18, description="Age in years (0-18 inclusive)")
    photo_url: str = Field(..., min_length=1, description="Public URL of the uploaded photo")
    last_seen_location: str = Field(..., min_length=1, max_length=300)
    last_seen_lat: Optional[float] = Field(None, ge=-90, le=90)
    last_seen_lng: Optional[float] = Field(None, ge=-180, le=180)
    time_missing: datetime = Field(..., description="When the child went missing")
    description: str = Field(..., min_length=1, max_length=2000)
    risk_level: RiskLevel = Field(default=RiskLevel.MEDIUM)

    class Config:
        json_schema_extra = {
            "example": {
                "child_name": "Asha",
                "age": 7,
                "photo_url": "https://storage.googleapis.com/trinetra-evidence/1718000000000_k3j9xa.webp",
                "last_seen_location": "Central Park",
                "time_missing": "2024-06-10T09:30:00Z",
                "description": "red jacket",
                "risk_level": "high",
            }
        }


class Alert(BaseModel):
    """Alert as stored and returned (system fields included)."""
    id: str = Field(..., description="Firestore document ID")
    child_name: str
    age: int = Field(..., ge=0, le=18)
    photo_url: str
    last_seen_location: str
    last_seen_lat: Optional[float] = None
    last_seen_lng: Optional[float] = None
    time_missing: datetime
    description: str
    risk_level: RiskLevel
    status: AlertStatus
    created_by: Optional[str] = Field(None, description="Account that raised the alert")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class AlertStatusUpdateRequest(BaseModel):
    status: AlertStatusChange = Field(..., description="New status value")
