"""
Test HTTP and WebSocket routes

End-to-end flows through the FastAPI app with the mock stores.
"""

import base64
from unittest.mock import patch

from trinetra.config.mock_firestore import DocumentReference
from trinetra.services.alert_service import ALERTS_COLLECTION
from trinetra.services.sighting_service import SIGHTINGS_COLLECTION


def create_alert(client, headers, payload):
    resp = client.post("/alerts", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestRootAndHealth:

    def test_root(self, client):
        data = client.get("/").json()
        assert data["status"] == "running"
        assert data["live_alerts"] == "/ws/alerts"

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_database_health(self, client):
        resp = client.get("/health/db")
        assert resp.status_code == 200
        assert resp.json()["database"] == "mock"


class TestAuthRoutes:

    def test_verify_police_id(self, client):
        resp = client.post("/auth/police/verify-id", json={"police_id": "POL001"})
        assert resp.status_code == 200
        assert resp.json() == {"is_valid": True, "station_name": "Central Police Station"}

    def test_verify_unknown_police_id(self, client):
        resp = client.post("/auth/police/verify-id", json={"police_id": "XYZ"})
        assert resp.json() == {"is_valid": False, "station_name": None}

    def test_police_registration_denied(self, client):
        """Scenario: an unknown police id is denied with the verification payload."""
        resp = client.post("/auth/police/sign-up", json={
            "full_name": "Someone",
            "official_email": "someone@police.gov.in",
            "username": "someone",
            "password": "s3cret!",
            "confirm_password": "s3cret!",
            "police_id": "XYZ",
        })

        assert resp.status_code == 403
        assert resp.json()["detail"] == "Invalid Police ID - Access Denied"
        assert resp.json()["verification"]["is_valid"] is False

    def test_police_registration_and_sign_in(self, client):
        resp = client.post("/auth/police/sign-up", json={
            "full_name": "Inspector R. Mehta",
            "official_email": "r.mehta@police.gov.in",
            "username": "rmehta",
            "password": "s3cret!",
            "confirm_password": "s3cret!",
            "police_id": "POL002",
        })
        assert resp.status_code == 201
        assert resp.json()["profile"]["police_station"] == "North Zone Police Station"

        resp = client.post("/auth/sign-in", json={"username": "rmehta", "password": "s3cret!"})
        assert resp.status_code == 200
        token = resp.json()["token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["role"] == "police"
        assert me["verified"] is True

    def test_citizen_sign_up_and_sign_out(self, client):
        resp = client.post("/auth/citizen/sign-up", json={"username": "anita", "password": "hunter22"})
        assert resp.status_code == 201

        token = client.post("/auth/sign-in", json={"username": "anita", "password": "hunter22"}).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert client.post("/auth/sign-out", headers=headers).status_code == 200
        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_bad_credentials(self, client):
        resp = client.post("/auth/sign-in", json={"username": "nobody", "password": "whatever"})
        assert resp.status_code == 401

    def test_me_requires_session(self, client):
        assert client.get("/auth/me").status_code == 401
        assert client.get("/auth/me", headers={"Authorization": "Token abc"}).status_code == 401


class TestAlertRoutes:

    def test_police_creates_alert(self, client, police_headers, alert_payload):
        """Scenario: verified police create an alert; it appears in the active list."""
        created = create_alert(client, police_headers, alert_payload)

        assert created["status"] == "active"
        assert created["child_name"] == "Asha"

        active = client.get("/alerts/active").json()
        assert [a["id"] for a in active] == [created["id"]]
        assert client.get(f"/alerts/{created['id']}").json()["description"] == "red jacket"

    def test_citizen_cannot_create_alert(self, client, citizen_headers, alert_payload):
        resp = client.post("/alerts", json=alert_payload, headers=citizen_headers)
        assert resp.status_code == 403
        assert client.get("/alerts/active").json() == []

    def test_anonymous_cannot_create_alert(self, client, alert_payload):
        assert client.post("/alerts", json=alert_payload).status_code == 401

    def test_alert_without_photo_rejected(self, client, police_headers, alert_payload):
        payload = {**alert_payload, "photo_url": ""}
        resp = client.post("/alerts", json=payload, headers=police_headers)
        assert resp.status_code == 422
        assert client.get("/alerts/active").json() == []

    def test_alert_age_out_of_range(self, client, police_headers, alert_payload):
        resp = client.post("/alerts", json={**alert_payload, "age": 19}, headers=police_headers)
        assert resp.status_code == 422

    def test_resolve_alert(self, client, police_headers, alert_payload):
        """Scenario: resolving moves the alert from active to resolved."""
        created = create_alert(client, police_headers, alert_payload)

        resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=police_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "resolved"

        again = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=police_headers)
        assert again.status_code == 200

        assert client.get("/alerts/active").json() == []
        assert [a["id"] for a in client.get("/alerts/resolved").json()] == [created["id"]]

    def test_only_resolved_is_settable(self, client, police_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)
        resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "inactive"}, headers=police_headers)
        assert resp.status_code == 422

    def test_citizen_cannot_resolve(self, client, police_headers, citizen_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)
        resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=citizen_headers)
        assert resp.status_code == 403

    def test_unknown_alert(self, client, police_headers):
        assert client.get("/alerts/missing").status_code == 404
        resp = client.patch("/alerts/missing/status", json={"status": "resolved"}, headers=police_headers)
        assert resp.status_code == 404

    def test_terminal_alert_status_conflict(self, client, db, police_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)
        db.collection(ALERTS_COLLECTION).document(created["id"]).update({"status": "inactive"})

        resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=police_headers)

        assert resp.status_code == 409
        assert resp.json()["detail"]["allowed_transitions"] == []

    def test_status_write_failure_is_backend_error(self, client, police_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)

        with patch.object(DocumentReference, "update", side_effect=RuntimeError("deadline exceeded")):
            resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=police_headers)

        assert resp.status_code == 502
        assert client.get(f"/alerts/{created['id']}").json()["status"] == "active"

    def test_alert_deleted_during_status_change(self, client, alert_service, police_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)
        stored = alert_service.get_by_id(created["id"])

        with patch.object(alert_service, "get_by_id", side_effect=[stored, None]):
            resp = client.patch(f"/alerts/{created['id']}/status", json={"status": "resolved"}, headers=police_headers)

        assert resp.status_code == 404

    def test_delete_alert(self, client, police_headers, alert_payload):
        created = create_alert(client, police_headers, alert_payload)
        assert client.delete(f"/alerts/{created['id']}", headers=police_headers).status_code == 200
        assert client.get(f"/alerts/{created['id']}").status_code == 404
        assert client.delete(f"/alerts/{created['id']}", headers=police_headers).status_code == 404


class TestSightingRoutes:

    def test_anonymous_sighting_with_photo(self, client, db, police_headers, alert_payload, small_png):
        """Scenario: a citizen uploads a photo and reports a sighting without signing in."""
        alert = create_alert(client, police_headers, alert_payload)

        upload = client.post(
            "/evidence/upload?kind=sighting_photo",
            files={"file": ("seen.png", small_png, "image/png")},
        )
        assert upload.status_code == 201
        photo_url = upload.json()["public_url"]

        resp = client.post(f"/alerts/{alert['id']}/sightings", json={
            "location": "Bus stand",
            "description": "",
            "photo_url": photo_url,
        })
        assert resp.status_code == 201
        assert resp.json()["reporter_id"] is None
        assert resp.json()["description"] is None

        listed = client.get(f"/alerts/{alert['id']}/sightings", headers=police_headers).json()
        assert [s["photo_url"] for s in listed] == [photo_url]
        assert len(client.get("/sightings", headers=police_headers).json()) == 1

    def test_signed_in_sighting_records_reporter(self, client, account_service, police_headers,
                                                 citizen_headers, citizen_token, alert_payload):
        alert = create_alert(client, police_headers, alert_payload)

        resp = client.post(f"/alerts/{alert['id']}/sightings", headers=citizen_headers, json={
            "location": "Market",
            "photo_url": "https://storage.googleapis.com/trinetra-test/sighting_1_abcdef.png",
        })

        assert resp.json()["reporter_id"] == account_service.resolve_session(citizen_token).account_id

    def test_sighting_without_photo(self, client, db, police_headers, alert_payload):
        """Scenario: a sighting without a photo is rejected and nothing is stored."""
        alert = create_alert(client, police_headers, alert_payload)

        resp = client.post(f"/alerts/{alert['id']}/sightings", json={"location": "Bus stand"})

        assert resp.status_code == 422
        assert list(db.collection(SIGHTINGS_COLLECTION).stream()) == []

    def test_sighting_for_unknown_alert(self, client):
        resp = client.post("/alerts/missing/sightings", json={"location": "x", "photo_url": "https://a/b.png"})
        assert resp.status_code == 404

    def test_citizen_cannot_read_sightings(self, client, citizen_headers):
        assert client.get("/sightings", headers=citizen_headers).status_code == 403
        assert client.get("/sightings").status_code == 401


class TestEvidenceRoutes:

    def test_upload_rejects_non_images(self, client, bucket):
        resp = client.post("/evidence/upload", files={"file": ("doc.pdf", b"%PDF-1.7", "application/pdf")})
        assert resp.status_code == 415
        assert bucket.objects == {}

    def test_large_upload_is_compressed(self, client, large_png):
        resp = client.post(
            "/evidence/upload?kind=alert_photo",
            files={"file": ("big.png", large_png, "image/png")},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["compressed"] is True
        assert body["content_type"] == "image/webp"
        assert body["size_bytes"] <= body["original_size_bytes"]

    def test_browser_capture(self, client, small_png):
        data_url = "data:image/png;base64," + base64.b64encode(small_png).decode()
        resp = client.post("/evidence/capture", json={"data_url": data_url, "kind": "id_proof"})
        assert resp.status_code == 201
        assert resp.json()["path"].startswith("id_proof_")


class TestAlertFeed:

    def test_ping(self, client):
        with client.websocket_connect("/ws/alerts") as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}

    def test_new_alert_is_pushed(self, client, police_headers, alert_payload):
        """Scenario: a connected citizen receives a notice when police create an alert."""
        with client.websocket_connect("/ws/alerts") as ws:
            ws.send_text("ping")
            assert ws.receive_json() == {"type": "pong"}

            created = create_alert(client, police_headers, alert_payload)

            message = ws.receive_json()
            assert message["type"] == "alert_created"
            assert message["alert"]["id"] == created["id"]
            assert message["notice"] == {"title": "New alert received!", "description": "Missing: Asha, Age 7"}

    def test_session_messages(self, client, police_token):
        with client.websocket_connect("/ws/alerts") as ws:
            ws.send_json({"type": "session", "token": police_token})
            state = ws.receive_json()
            assert state["signed_in"] is True
            assert state["can_manage_alerts"] is True

            ws.send_json({"type": "session", "token": None})
            assert ws.receive_json()["signed_in"] is False

            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"
