"""Tests for RSVP endpoints."""
from datetime import datetime, timedelta, timezone

from tests.conftest import (
    create_test_event,
    create_test_user,
    insert_attendance,
    insert_event,
    make_admin,
)
from event_manager.models.attendance import AttendanceStatus
from event_manager.models.event import Visibility


def _rsvp(client, user_id: str, event_id: str, status: str = "GOING"):
    return client.post(
        f"/api/attendances/?actor_user_id={user_id}",
        json={"event_id": event_id, "status": status},
    )


def _setup(client):
    host = create_test_user(client, name="Host")
    guest = create_test_user(client, name="Guest")
    event = create_test_event(client, host["user_id"]).json()
    return host, guest, event


class TestRsvp:
    """Join / change / withdraw."""

    def test_join_event(self, client):
        _, guest, event = _setup(client)
        resp = _rsvp(client, guest["user_id"], event["event_id"], "MAYBE")
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "MAYBE"
        assert data["user_name"] == "Guest"
        assert data["event_title"] == event["title"]

        resp = client.get(f"/api/events/{event['event_id']}?viewer_id={guest['user_id']}")
        assert resp.json()["is_attending"] is True
        assert resp.json()["attendee_count"] == 1

    def test_default_status_is_going(self, client):
        _, guest, event = _setup(client)
        resp = client.post(
            f"/api/attendances/?actor_user_id={guest['user_id']}",
            json={"event_id": event["event_id"]},
        )
        assert resp.json()["status"] == "GOING"

    def test_duplicate_rsvp_rejected(self, client):
        _, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        resp = _rsvp(client, guest["user_id"], event["event_id"], "DECLINED")
        assert resp.status_code == 400
        assert resp.json()["message"] == "You are already attending this event"

    def test_join_unknown_event(self, client):
        guest = create_test_user(client)
        resp = _rsvp(client, guest["user_id"], "00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404

    def test_join_deleted_event(self, client):
        host, guest, event = _setup(client)
        client.delete(f"/api/events/{event['event_id']}?actor_user_id={host['user_id']}")
        resp = _rsvp(client, guest["user_id"], event["event_id"])
        assert resp.status_code == 404

    def test_cannot_self_join_private_event(self, client):
        host = create_test_user(client, name="Host")
        guest = create_test_user(client, name="Guest")
        event = create_test_event(client, host["user_id"], visibility="PRIVATE").json()
        resp = _rsvp(client, guest["user_id"], event["event_id"])
        assert resp.status_code == 403

    def test_change_and_withdraw(self, client):
        _, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])

        resp = client.put(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={guest['user_id']}",
            json={"status": "DECLINED"},
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "DECLINED"

        resp = client.get(f"/api/attendances/{event['event_id']}/{guest['user_id']}")
        assert resp.json()["status"] == "DECLINED"

        resp = client.delete(f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={guest['user_id']}")
        assert resp.status_code == 204
        resp = client.get(f"/api/attendances/{event['event_id']}/{guest['user_id']}")
        assert resp.status_code == 404

    def test_change_missing_rsvp(self, client):
        _, guest, event = _setup(client)
        resp = client.put(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={guest['user_id']}",
            json={"status": "MAYBE"},
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Attendance record not found"

    def test_change_rsvp_on_deleted_event(self, client):
        host, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        client.delete(f"/api/events/{event['event_id']}?actor_user_id={host['user_id']}")

        resp = client.put(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={guest['user_id']}",
            json={"status": "MAYBE"},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Event is deleted"


class TestPastEvents:
    """RSVP writes on a past event are refused for everyone, admins included."""

    def _past_event(self, db, host_id: str):
        now = datetime.now(timezone.utc)
        return insert_event(db, host_id, now - timedelta(days=1, hours=2), now - timedelta(days=1))

    def test_join_past_event(self, client, db):
        host, guest, _ = _setup(client)
        past = self._past_event(db, host["user_id"])
        resp = _rsvp(client, guest["user_id"], past.event_id)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot attend a past event"

    def test_change_past_rsvp(self, client, db):
        host, guest, _ = _setup(client)
        past = self._past_event(db, host["user_id"])
        insert_attendance(db, past.event_id, guest["user_id"])
        resp = client.put(
            f"/api/attendances/{past.event_id}/{guest['user_id']}?actor_user_id={guest['user_id']}",
            json={"status": "DECLINED"},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot update attendance for a past event"

    def test_withdraw_past_rsvp_even_as_admin(self, client, db):
        host, guest, _ = _setup(client)
        make_admin(db, guest["user_id"])
        past = self._past_event(db, host["user_id"])
        insert_attendance(db, past.event_id, guest["user_id"])
        resp = client.delete(f"/api/attendances/{past.event_id}/{guest['user_id']}?actor_user_id={guest['user_id']}")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot remove attendance for a past event"

    def test_ongoing_event_accepts_rsvp(self, client, db):
        host, guest, _ = _setup(client)
        now = datetime.now(timezone.utc)
        ongoing = insert_event(db, host["user_id"], now - timedelta(hours=1), now + timedelta(hours=1))
        resp = _rsvp(client, guest["user_id"], ongoing.event_id)
        assert resp.status_code == 201


class TestBulkAttendance:

    def test_host_adds_users(self, client):
        host, guest, event = _setup(client)
        third = create_test_user(client, name="Third")
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"], third["user_id"]]},
        )
        assert resp.status_code == 201
        assert {a["user_id"] for a in resp.json()} == {guest["user_id"], third["user_id"]}

    def test_already_attending_users_skipped(self, client):
        host, guest, event = _setup(client)
        third = create_test_user(client, name="Third")
        _rsvp(client, guest["user_id"], event["event_id"], "MAYBE")
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"], third["user_id"]]},
        )
        assert resp.status_code == 201
        assert [a["user_id"] for a in resp.json()] == [third["user_id"]]

        # The existing RSVP is untouched
        resp = client.get(f"/api/attendances/{event['event_id']}/{guest['user_id']}")
        assert resp.json()["status"] == "MAYBE"

    def test_all_already_attending(self, client):
        host, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"]]},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "All users are already attending this event"

    def test_unknown_user(self, client):
        host, guest, event = _setup(client)
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"], "no-such-user"]},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Some users were not found"

    def test_non_host_forbidden(self, client):
        _, guest, event = _setup(client)
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={guest['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"]]},
        )
        assert resp.status_code == 403

    def test_host_can_add_to_private_event(self, client):
        host = create_test_user(client, name="Host")
        guest = create_test_user(client, name="Guest")
        event = create_test_event(client, host["user_id"], visibility="PRIVATE").json()
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"]]},
        )
        assert resp.status_code == 201

        resp = client.get(f"/api/events/{event['event_id']}?viewer_id={guest['user_id']}")
        assert resp.status_code == 200


class TestAttendanceReports:
    """Per-event stats and per-user summaries."""

    def test_event_attendees_and_stats(self, client, db):
        host, guest, event = _setup(client)
        third = create_test_user(client, name="Third")
        fourth = create_test_user(client, name="Fourth")
        _rsvp(client, guest["user_id"], event["event_id"], "GOING")
        _rsvp(client, third["user_id"], event["event_id"], "MAYBE")
        _rsvp(client, fourth["user_id"], event["event_id"], "GOING")

        resp = client.get(f"/api/attendances/events/{event['event_id']}")
        assert len(resp.json()) == 3

        stats = client.get(f"/api/attendances/events/{event['event_id']}/stats").json()
        assert stats["total"] == 3
        assert stats["going"] == 2
        assert stats["maybe"] == 1
        assert stats["declined"] == 0
        assert round(stats["going_percentage"], 2) == 66.67

        summary = client.get(f"/api/attendances/events/{event['event_id']}/summary").json()
        assert summary["event_title"] == event["title"]
        assert summary["host_name"] == "Host"
        assert summary["stats"]["total"] == 3

    def test_empty_stats(self, client):
        _, _, event = _setup(client)
        stats = client.get(f"/api/attendances/events/{event['event_id']}/stats").json()
        assert stats["total"] == 0
        assert stats["going_percentage"] == 0.0

    def test_private_attendee_list_hidden(self, client):
        host = create_test_user(client, name="Host")
        stranger = create_test_user(client, name="Stranger")
        event = create_test_event(client, host["user_id"], visibility="PRIVATE").json()
        resp = client.get(f"/api/attendances/events/{event['event_id']}?viewer_id={stranger['user_id']}")
        assert resp.status_code == 403
        resp = client.get(f"/api/attendances/events/{event['event_id']}?viewer_id={host['user_id']}")
        assert resp.status_code == 200

    def test_user_history(self, client, db):
        host, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        now = datetime.now(timezone.utc)
        past = insert_event(db, host["user_id"], now - timedelta(days=3), now - timedelta(days=3) + timedelta(hours=2),
                            title="Last Week Social")
        insert_attendance(db, past.event_id, guest["user_id"], AttendanceStatus.declined)

        upcoming = client.get(f"/api/attendances/users/{guest['user_id']}/upcoming").json()
        assert [h["event_id"] for h in upcoming] == [event["event_id"]]
        assert upcoming[0]["event_completed"] is False
        assert upcoming[0]["host_name"] == "Host"

        history = client.get(f"/api/attendances/users/{guest['user_id']}/past").json()
        assert [h["event_title"] for h in history] == ["Last Week Social"]
        assert history[0]["event_completed"] is True
        assert history[0]["status"] == "DECLINED"

        summary = client.get(f"/api/attendances/users/{guest['user_id']}/summary").json()
        assert summary["total_events_attended"] == 2
        assert summary["upcoming_events"] == 1
        assert summary["past_events"] == 1
        assert summary["going_count"] == 1
        assert summary["declined_count"] == 1
        assert summary["attendance_rate"] == 50.0

    def test_events_by_attendee_respects_viewer(self, client, db):
        host, guest, public = _setup(client)
        private = insert_event(
            db, host["user_id"],
            datetime.now(timezone.utc) + timedelta(days=5),
            datetime.now(timezone.utc) + timedelta(days=5, hours=1),
            title="Private Dinner",
            visibility=Visibility.private,
        )
        insert_attendance(db, public["event_id"], guest["user_id"])
        insert_attendance(db, private.event_id, guest["user_id"])

        own = client.get(f"/api/attendances/users/{guest['user_id']}/events?viewer_id={guest['user_id']}").json()
        assert {e["event_id"] for e in own} == {public["event_id"], private.event_id}

        anon = client.get(f"/api/attendances/users/{guest['user_id']}/events").json()
        assert [e["event_id"] for e in anon] == [public["event_id"]]

    def test_summary_for_unknown_user(self, client):
        resp = client.get("/api/attendances/users/no-such-user/summary")
        assert resp.status_code == 404


class TestPrivateEventContents:
    """Reads keyed by user or RSVP must not expose a PRIVATE event to outsiders."""

    def _private_with_guest(self, client):
        host = create_test_user(client, name="Host")
        guest = create_test_user(client, name="Guest")
        event = create_test_event(client, host["user_id"], title="Secret Board Meeting", visibility="PRIVATE").json()
        resp = client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"]]},
        )
        assert resp.status_code == 201
        return host, guest, event

    def test_anonymous_reads_hide_private_title(self, client):
        _, guest, event = self._private_with_guest(client)
        guest_id = guest["user_id"]

        assert client.get(f"/api/events/{event['event_id']}").status_code == 403

        for path in (
            f"/api/attendances/users/{guest_id}/upcoming",
            f"/api/attendances/users/{guest_id}/past",
            f"/api/attendances/users/{guest_id}/events",
            f"/api/attendances/users/{guest_id}/summary",
        ):
            resp = client.get(path)
            assert resp.status_code == 200, path
            assert "Secret Board Meeting" not in resp.text, path

        resp = client.get(f"/api/attendances/{event['event_id']}/{guest_id}")
        assert resp.status_code == 403
        assert "Secret Board Meeting" not in resp.text

        summary = client.get(f"/api/attendances/users/{guest_id}/summary").json()
        assert summary["total_events_attended"] == 0
        assert summary["first_event_date"] is None

    def test_stranger_reads_hide_private_title(self, client):
        _, guest, event = self._private_with_guest(client)
        stranger = create_test_user(client, name="Stranger")
        resp = client.get(
            f"/api/attendances/users/{guest['user_id']}/upcoming?viewer_id={stranger['user_id']}"
        )
        assert resp.json() == []
        resp = client.get(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?viewer_id={stranger['user_id']}"
        )
        assert resp.status_code == 403

    def test_guest_and_host_see_private_rows(self, client):
        host, guest, event = self._private_with_guest(client)
        for viewer in (guest, host):
            upcoming = client.get(
                f"/api/attendances/users/{guest['user_id']}/upcoming?viewer_id={viewer['user_id']}"
            ).json()
            assert [h["event_title"] for h in upcoming] == ["Secret Board Meeting"]

            resp = client.get(
                f"/api/attendances/{event['event_id']}/{guest['user_id']}?viewer_id={viewer['user_id']}"
            )
            assert resp.status_code == 200

        summary = client.get(
            f"/api/attendances/users/{guest['user_id']}/summary?viewer_id={guest['user_id']}"
        ).json()
        assert summary["total_events_attended"] == 1

    def test_conflict_lookup_hides_private_events(self, client):
        host, _, event = self._private_with_guest(client)
        window = {
            "user_id": host["user_id"],
            "start_time": event["start_time"],
            "end_time": event["end_time"],
        }
        resp = client.get("/api/events/conflicts", params=window)
        assert resp.status_code == 200
        assert resp.json() == []
        assert "Secret Board Meeting" not in resp.text

        resp = client.get("/api/events/conflicts", params={**window, "viewer_id": host["user_id"]})
        assert [c["event_id"] for c in resp.json()] == [event["event_id"]]


class TestRsvpAuthorization:
    """Only the attendee, the host or an ADMIN may change or withdraw an RSVP."""

    def test_stranger_cannot_change_or_withdraw(self, client):
        _, guest, event = _setup(client)
        stranger = create_test_user(client, name="Stranger")
        _rsvp(client, guest["user_id"], event["event_id"])
        path = f"/api/attendances/{event['event_id']}/{guest['user_id']}"

        resp = client.put(f"{path}?actor_user_id={stranger['user_id']}", json={"status": "DECLINED"})
        assert resp.status_code == 403
        resp = client.delete(f"{path}?actor_user_id={stranger['user_id']}")
        assert resp.status_code == 403

        assert client.get(path).json()["status"] == "GOING"

    def test_actor_is_required(self, client):
        _, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        path = f"/api/attendances/{event['event_id']}/{guest['user_id']}"

        assert client.put(path, json={"status": "DECLINED"}).status_code == 422
        assert client.delete(path).status_code == 422
        assert client.get(path).status_code == 200

    def test_private_guest_keeps_access_after_stranger_attempt(self, client):
        host = create_test_user(client, name="Host")
        guest = create_test_user(client, name="Guest")
        stranger = create_test_user(client, name="Stranger")
        event = create_test_event(client, host["user_id"], visibility="PRIVATE").json()
        client.post(
            f"/api/attendances/bulk?actor_user_id={host['user_id']}",
            json={"event_id": event["event_id"], "user_ids": [guest["user_id"]]},
        )

        resp = client.delete(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={stranger['user_id']}"
        )
        assert resp.status_code == 403
        resp = client.get(f"/api/events/{event['event_id']}?viewer_id={guest['user_id']}")
        assert resp.status_code == 200

    def test_host_and_admin_can_manage(self, client, db):
        host, guest, event = _setup(client)
        admin = create_test_user(client, name="Admin")
        make_admin(db, admin["user_id"])
        _rsvp(client, guest["user_id"], event["event_id"])
        path = f"/api/attendances/{event['event_id']}/{guest['user_id']}"

        resp = client.put(f"{path}?actor_user_id={host['user_id']}", json={"status": "MAYBE"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "MAYBE"

        resp = client.delete(f"{path}?actor_user_id={admin['user_id']}")
        assert resp.status_code == 204


class TestInactiveUsers:
    """Deactivated accounts cannot act."""

    def test_inactive_user_cannot_rsvp(self, client):
        _, guest, event = _setup(client)
        client.delete(f"/api/users/{guest['user_id']}?actor_user_id={guest['user_id']}")
        resp = _rsvp(client, guest["user_id"], event["event_id"])
        assert resp.status_code == 403
        assert resp.json()["message"] == "User is inactive"

    def test_inactive_attendee_cannot_change_rsvp(self, client):
        _, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"])
        client.delete(f"/api/users/{guest['user_id']}?actor_user_id={guest['user_id']}")
        resp = client.put(
            f"/api/attendances/{event['event_id']}/{guest['user_id']}?actor_user_id={guest['user_id']}",
            json={"status": "DECLINED"},
        )
        assert resp.status_code == 403


class TestUserSummaryConsistency:

    def test_deleted_events_left_out_of_every_count(self, client, db):
        host, guest, event = _setup(client)
        _rsvp(client, guest["user_id"], event["event_id"], "GOING")
        now = datetime.now(timezone.utc)
        gone = insert_event(db, host["user_id"], now + timedelta(days=4), now + timedelta(days=4, hours=1),
                            title="Cancelled Picnic", is_deleted=True)
        insert_attendance(db, gone.event_id, guest["user_id"], AttendanceStatus.declined)

        summary = client.get(f"/api/attendances/users/{guest['user_id']}/summary").json()
        assert summary["total_events_attended"] == 1
        assert summary["upcoming_events"] == 1
        assert summary["declined_count"] == 0
        assert summary["attendance_rate"] == 100.0
