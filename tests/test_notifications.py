"""
Test Notification Fan-out

Insert events from the alerts listener and delivery to WebSocket clients.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from trinetra.services.alert_service import ALERTS_COLLECTION
from trinetra.services.notifications import AlertBroadcaster, FirestoreAlertEventSource, build_notice
from trinetra.services.notifications.broadcaster import build_payload


class TestFirestoreAlertEventSource:

    def test_initial_snapshot_is_skipped(self, db, alert_service, alert_fields, police_profile):
        alert_service.create(alert_fields, police_profile)
        received = []

        FirestoreAlertEventSource(db).subscribe(received.append)

        assert received == []

    def test_inserts_are_forwarded(self, db, alert_service, alert_fields, police_profile):
        received = []
        FirestoreAlertEventSource(db).subscribe(received.append)

        created = alert_service.create(alert_fields, police_profile)

        assert [a.id for a in received] == [created.id]
        assert received[0].child_name == "Asha"

    def test_updates_and_deletes_are_ignored(self, db, alert_service, alert_fields, police_profile):
        created = alert_service.create(alert_fields, police_profile)
        received = []
        FirestoreAlertEventSource(db).subscribe(received.append)

        alert_service.set_status(created.id, "resolved")
        alert_service.delete(created.id)

        assert received == []

    def test_malformed_inserts_are_dropped(self, db):
        received = []
        FirestoreAlertEventSource(db).subscribe(received.append)

        db.collection(ALERTS_COLLECTION).document("junk").set({"child_name": "?"})

        assert received == []

    def test_unsubscribe_stops_delivery(self, db, alert_service, alert_fields, police_profile):
        received = []
        source = FirestoreAlertEventSource(db)
        token = source.subscribe(received.append)

        source.unsubscribe(token)
        source.unsubscribe(token)
        alert_service.create(alert_fields, police_profile)

        assert received == []

    def test_callback_errors_do_not_escape(self, db, alert_service, alert_fields, police_profile):
        def broken(alert):
            raise RuntimeError("ui bug")

        FirestoreAlertEventSource(db).subscribe(broken)

        alert_service.create(alert_fields, police_profile)


class TestAlertBroadcaster:

    def test_notice_text(self, alert_service, alert_fields, police_profile):
        alert = alert_service.create(alert_fields, police_profile)

        assert build_notice(alert) == {"title": "New alert received!", "description": "Missing: Asha, Age 7"}
        payload = build_payload(alert)
        assert payload["type"] == "alert_created"
        assert payload["alert"]["id"] == alert.id

    def test_broadcast_prunes_dead_connections(self):
        broadcaster = AlertBroadcaster(MagicMock())
        alive = MagicMock(send_json=AsyncMock())
        dead = MagicMock(send_json=AsyncMock(side_effect=RuntimeError("closed")))
        broadcaster.active = {alive, dead}

        asyncio.run(broadcaster.broadcast({"type": "alert_created"}))

        alive.send_json.assert_awaited_once_with({"type": "alert_created"})
        assert broadcaster.active == {alive}

    def test_insert_from_listener_thread_reaches_clients(self, db, alert_service, alert_fields, police_profile):
        """Test a backend-thread insert is delivered on the event loop."""
        broadcaster = AlertBroadcaster(FirestoreAlertEventSource(db))
        client = MagicMock(send_json=AsyncMock())
        broadcaster.active.add(client)

        async def scenario():
            broadcaster.start(asyncio.get_running_loop())
            created = await asyncio.to_thread(alert_service.create, alert_fields, police_profile)
            for _ in range(50):
                if client.send_json.await_count:
                    break
                await asyncio.sleep(0.01)
            broadcaster.stop()
            return created

        created = asyncio.run(scenario())

        payload = client.send_json.await_args.args[0]
        assert payload["alert"]["id"] == created.id
        assert payload["notice"]["description"] == "Missing: Asha, Age 7"
        assert not broadcaster.running

    def test_start_and_stop_manage_one_subscription(self):
        source = MagicMock()
        source.subscribe.return_value = "token-1"
        broadcaster = AlertBroadcaster(source)
        loop = MagicMock()

        broadcaster.start(loop)
        broadcaster.start(loop)
        broadcaster.stop()
        broadcaster.stop()

        source.subscribe.assert_called_once()
        source.unsubscribe.assert_called_once_with("token-1")

    def test_no_delivery_when_stopped(self, alert_service, alert_fields, police_profile):
        broadcaster = AlertBroadcaster(MagicMock())
        alert = alert_service.create(alert_fields, police_profile)

        broadcaster._on_insert(alert)
