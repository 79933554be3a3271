"""
Profile and authentication models.
A profile binds a role (and, for police, verification metadata) to an account.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserRole(str, Enum):
    CITIZEN = "citizen"
    POLICE = "police"


class Profile(BaseModel):
    """Profile document stored at profiles/{account_id}."""
    id: str = Field(..., description="Account identity (auth provider uid)")
    username: str = Field(..., description="Unique handle")
    email: Optional[str] = None
    role: UserRole
    full_name: Optional[str] = None
    official_email: Optional[str] = None
    police_id: Optional[str] = Field(None, description="Claimed credential id (police only)")
    police_station: Optional[str] = Field(None, description="Station bound from the credential registry")
    id_proof_url: Optional[str] = None
    verified: bool = Field(default=False, description="Only meaningful for police accounts")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class SessionContext(BaseModel):
    """
    Explicit per-request session: who is calling and what they may do.
    Built from the bearer token and passed down through call parameters.
    """
    account_id: str
    profile: Optional[Profile] = None


class CitizenSignUpRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class SignInRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)


class PoliceIdVerifyRequest(BaseModel):
    police_id: str = Field(..., min_length=1, max_length=50, description="Claimed police credential id")


class PoliceIdVerification(BaseModel):
    """Result of a credential registry lookup. Failure is the default."""
    is_valid: bool = False
    station_name: Optional[str] = None


class PoliceSignUpRequest(BaseModel):
    """
    Police registration form.
    The station is not accepted from the registrant; it is taken from the registry.
    """
    full_name: str = Field(..., min_length=1, max_length=100)
    official_email: str = Field(..., max_length=200, pattern=EMAIL_PATTERN)
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
    police_id: str = Field(..., min_length=1, max_length=50)
    id_proof_url: Optional[str] = Field(None, description="Uploaded ID proof (optional)")

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Inspector R. Mehta",
                "official_email": "r.mehta@police.gov.in",
                "username": "rmehta",
                "password": "s3cret!",
                "confirm_password": "s3cret!",
                "police_id": "POL001",
            }
        }


class SessionResponse(BaseModel):
    """Authentication response."""
    success: bool = True
    message: str
    token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    profile: Optional[Profile] = None
