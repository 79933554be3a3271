"""
Authentication endpoints - citizen and police accounts.

Usernames are handles mapped onto auth provider emails. Police
registration is a two-step flow: verify the police id first (the form
reveals its remaining fields only after a valid result), then sign up.
"""

from fastapi import APIRouter, Depends, status
from trinetra.core.exceptions import NotFoundError
from trinetra.models.base import BaseResponse
from trinetra.models.profile import (
    CitizenSignUpRequest, PoliceIdVerification, PoliceIdVerifyRequest,
    PoliceSignUpRequest, Profile, SessionContext, SessionResponse, SignInRequest
)
from trinetra.routes.deps import require_session
from trinetra.services.account_service import AccountService, get_account_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/citizen/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def citizen_sign_up(request: CitizenSignUpRequest, accounts: AccountService = Depends(get_account_service)):
    """Create a citizen account. Sign in afterwards to get a token."""
    profile = accounts.sign_up_citizen(request)
    return SessionResponse(message="Account created successfully", profile=profile)


@router.post("/police/verify-id", response_model=PoliceIdVerification)
def verify_police_id(request: PoliceIdVerifyRequest, accounts: AccountService = Depends(get_account_service)):
    """
    Look up a claimed police id in the credential registry.

    Always 200: an unknown id or a registry failure is reported as
    is_valid=false.
    """
    return accounts.verify_police_id(request.police_id)


@router.post("/police/sign-up", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def police_sign_up(request: PoliceSignUpRequest, accounts: AccountService = Depends(get_account_service)):
    """
    Register a police account.

    Returns 403 with the verification result when the police id does not
    verify; no account is created in that case.
    """
    profile = accounts.sign_up_police(request)
    return SessionResponse(message="Police account verified and created", profile=profile)


@router.post("/sign-in", response_model=SessionResponse)
def sign_in(request: SignInRequest, accounts: AccountService = Depends(get_account_service)):
    session, profile = accounts.sign_in(request)
    return SessionResponse(
        message="Signed in successfully",
        token=session.id_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        profile=profile
    )


@router.post("/sign-out", response_model=BaseResponse)
def sign_out(
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service)
):
    accounts.sign_out(session.account_id)
    return BaseResponse(message="Signed out")


@router.get("/me", response_model=Profile)
def current_profile(session: SessionContext = Depends(require_session)):
    """Profile of the signed-in account."""
    if session.profile is None:
        raise NotFoundError("Profile not found for this account")
    return session.profile
