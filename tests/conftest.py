"""
Pytest Fixtures for Trinetra Tests

Every test runs against a fresh in-process Firestore, an in-memory bucket
and the in-memory auth provider. Nothing reaches Firebase.
"""

import os
import pytest
from datetime import datetime, timezone
from io import BytesIO

# Set testing environment before imports
os.environ['USE_MOCK_DB'] = 'true'
os.environ['MOCK_DB_PATH'] = ''
os.environ['AUTH_PROVIDER'] = 'mock'
os.environ['LOG_LEVEL'] = 'WARNING'

from PIL import Image

from trinetra.config.mock_firestore import MockFirestore
from trinetra.config.mock_storage import MockBucket
from trinetra.models.alert import AlertCreate
from trinetra.models.profile import Profile, UserRole
from trinetra.services.account_service import AccountService
from trinetra.services.alert_service import AlertService
from trinetra.services.auth_provider.mock_provider import MockAuthProvider
from trinetra.services.evidence import EvidenceService, EvidenceStore
from trinetra.services.police_verification import PoliceVerificationService
from trinetra.services.profile_service import ProfileService
from trinetra.services.sighting_service import SightingService


REGISTRY = {
    "POL001": {"police_id": "POL001", "station_name": "Central Police Station", "is_valid": True},
    "POL002": {"police_id": "POL002", "station_name": "North Zone Police Station", "is_valid": True},
    "POL999": {"police_id": "POL999", "station_name": "Decommissioned Station", "is_valid": False},
}


@pytest.fixture
def db():
    """Fresh mock Firestore with the police id registry loaded."""
    store = MockFirestore()
    for doc_id, entry in REGISTRY.items():
        store.collection("police_ids").document(doc_id).set(entry)
    return store


@pytest.fixture
def bucket():
    return MockBucket("trinetra-test")


@pytest.fixture
def auth_provider():
    provider = MockAuthProvider()
    provider.HASH_ITERATIONS = 1000
    return provider


@pytest.fixture
def profile_service(db):
    return ProfileService(db)


@pytest.fixture
def verification_service(db):
    return PoliceVerificationService(db)


@pytest.fixture
def account_service(auth_provider, profile_service, verification_service):
    return AccountService(auth_provider, profile_service, verification_service)


@pytest.fixture
def alert_service(db):
    return AlertService(db)


@pytest.fixture
def sighting_service(db):
    return SightingService(db)


@pytest.fixture
def evidence_service(bucket):
    return EvidenceService(EvidenceStore(bucket))


@pytest.fixture
def police_profile():
    return Profile(
        id="officer-1",
        username="rmehta",
        role=UserRole.POLICE,
        police_id="POL001",
        police_station="Central Police Station",
        verified=True,
    )


@pytest.fixture
def unverified_police_profile():
    return Profile(id="officer-2", username="pending", role=UserRole.POLICE, verified=False)


@pytest.fixture
def citizen_profile():
    return Profile(id="citizen-1", username="anita", role=UserRole.CITIZEN)


@pytest.fixture
def alert_fields():
    """Form data for a valid alert."""
    return AlertCreate(
        child_name="Asha",
        age=7,
        photo_url="https://storage.googleapis.com/trinetra-test/1718000000000_k3j9xa.webp",
        last_seen_location="Central Park",
        time_missing=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
        description="red jacket",
        risk_level="high",
    )


@pytest.fixture
def alert_payload(alert_fields):
    """The same alert as a JSON request body."""
    return alert_fields.model_dump(mode="json")


def make_image_bytes(size=(64, 48), fmt="PNG", noise=False) -> bytes:
    """Encode a test image. Noise images do not compress."""
    if noise:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    else:
        img = Image.new("RGB", size, color=(200, 30, 30))
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def small_png():
    return make_image_bytes()


@pytest.fixture
def large_png():
    """A 1600x1200 noise PNG, well above the 1 MiB threshold."""
    return make_image_bytes(size=(1600, 1200), noise=True)


@pytest.fixture
def client(monkeypatch, db, account_service, alert_service, sighting_service, evidence_service):
    """
    TestClient with every service dependency pointed at the test stores.
    The alert broadcaster listens on the test database.
    """
    from fastapi.testclient import TestClient
    from trinetra.main import app
    from trinetra.services.account_service import get_account_service
    from trinetra.services.alert_service import get_alert_service
    from trinetra.services.evidence import get_evidence_service
    from trinetra.services.notifications import AlertBroadcaster, FirestoreAlertEventSource
    from trinetra.services.notifications import broadcaster as broadcaster_module
    from trinetra.services.sighting_service import get_sighting_service

    monkeypatch.setattr(broadcaster_module, "_alert_broadcaster", AlertBroadcaster(FirestoreAlertEventSource(db)))

    app.dependency_overrides[get_account_service] = lambda: account_service
    app.dependency_overrides[get_alert_service] = lambda: alert_service
    app.dependency_overrides[get_sighting_service] = lambda: sighting_service
    app.dependency_overrides[get_evidence_service] = lambda: evidence_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def sign_up_and_sign_in_police(account_service, username="rmehta", police_id="POL001") -> str:
    """Register a verified police account and return its bearer token."""
    from trinetra.models.profile import PoliceSignUpRequest, SignInRequest

    account_service.sign_up_police(PoliceSignUpRequest(
        full_name="Inspector R. Mehta",
        official_email=f"{username}@police.gov.in",
        username=username,
        password="s3cret!",
        confirm_password="s3cret!",
        police_id=police_id,
    ))
    session, _ = account_service.sign_in(SignInRequest(username=username, password="s3cret!"))
    return session.id_token


def sign_up_and_sign_in_citizen(account_service, username="anita") -> str:
    from trinetra.models.profile import CitizenSignUpRequest, SignInRequest

    account_service.sign_up_citizen(CitizenSignUpRequest(username=username, password="hunter22"))
    session, _ = account_service.sign_in(SignInRequest(username=username, password="hunter22"))
    return session.id_token


@pytest.fixture
def police_token(account_service):
    return sign_up_and_sign_in_police(account_service)


@pytest.fixture
def citizen_token(account_service):
    return sign_up_and_sign_in_citizen(account_service)


@pytest.fixture
def police_headers(police_token):
    return {"Authorization": f"Bearer {police_token}"}


@pytest.fixture
def citizen_headers(citizen_token):
    return {"Authorization": f"Bearer {citizen_token}"}
