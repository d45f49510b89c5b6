"""Integration tests for the mail items API

Tests cover:
- Intake, notify and pickup through HTTP
- Error mapping (401, 403, 404, 409, 422)
- Pending queue and history listing
- Recipient visibility
- Mailroom selection via ?mail_room_id=
"""

import pytest
from fastapi.testclient import TestClient

from mailflow.models import MailRoom


pytestmark = pytest.mark.integration

BASE = "/api/v1/mail-items"


def _create(client: TestClient, headers, **payload) -> dict:
    payload.setdefault("type", "package")
    response = client.post(BASE, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestMailItemLifecycle:
    """Happy path from intake to pickup"""

    def test_receive_notify_pickup(self, client, auth_headers, staff_profile, recipient_profile, mail_room):
        headers = auth_headers(staff_profile)

        item = _create(client, headers, recipient_id=recipient_profile.id, tracking_number="1Z999AA1", carrier="ups")
        assert item["status"] == "pending"
        assert item["mail_room_id"] == mail_room.id
        assert item["recipient_name"] == "Rita Recipient"
        assert item["processed_by_id"] == staff_profile.id

        response = client.post(f"{BASE}/{item['id']}/notify", headers=headers)
        assert response.status_code == 200, response.text
        notified = response.json()
        assert notified["status"] == "notified"
        assert notified["notified_at"] is not None
        assert notified["allowed_transitions"] == ["picked_up", "returned_to_sender", "lost", "other"]
        assert len(notified["notifications"]) == 1
        assert notified["notifications"][0]["destination"] == "rita@acme.example.com"

        response = client.post(
            f"{BASE}/{item['id']}/pickup",
            json={"signature": "Rita", "notes": "ID checked"},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        picked_up = response.json()
        assert picked_up["status"] == "picked_up"
        assert picked_up["picked_up_at"] is not None
        assert picked_up["processed_by_id"] == staff_profile.id
        assert picked_up["allowed_transitions"] == []
        assert picked_up["pickups"][0]["signature"] == "Rita"

    def test_mark_lost_with_reason(self, client, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        item = _create(client, headers)

        response = client.post(f"{BASE}/{item['id']}/mark-lost", json={"reason": "Never arrived"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "lost"

    def test_return_to_sender_without_body(self, client, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        item = _create(client, headers)

        response = client.post(f"{BASE}/{item['id']}/return-to-sender", headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "returned_to_sender"

    def test_edit_open_item(self, client, auth_headers, staff_profile, external_person):
        headers = auth_headers(staff_profile)
        item = _create(client, headers)

        response = client.patch(
            f"{BASE}/{item['id']}",
            json={"external_recipient_id": external_person.id, "is_priority": True},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["recipient_name"] == "Eve Visitor"
        assert response.json()["is_priority"] is True


class TestErrorMapping:
    """Domain errors surface with the right HTTP status"""

    def test_unauthenticated(self, client):
        response = client.get(f"{BASE}/pending")

        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get(f"{BASE}/pending", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_recipient_cannot_log_mail(self, client, auth_headers, recipient_profile):
        response = client.post(BASE, json={"type": "letter"}, headers=auth_headers(recipient_profile))

        assert response.status_code == 403

    def test_missing_type(self, client, auth_headers, staff_profile):
        response = client.post(BASE, json={"tracking_number": "X"}, headers=auth_headers(staff_profile))

        assert response.status_code == 422
        assert response.json() == {
            "error": "validation_error",
            "message": "Mail item type is required",
            "details": {"field": "type"},
        }

    def test_unknown_type_is_request_validation_error(self, client, auth_headers, staff_profile):
        response = client.post(BASE, json={"type": "crate"}, headers=auth_headers(staff_profile))

        assert response.status_code == 422
        assert response.json()["message"] == "Request validation failed"

    def test_pickup_before_notify(self, client, auth_headers, staff_profile, recipient_profile):
        headers = auth_headers(staff_profile)
        item = _create(client, headers, recipient_id=recipient_profile.id)

        response = client.post(f"{BASE}/{item['id']}/pickup", headers=headers)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "invalid_transition"
        assert body["details"] == {"current_status": "pending", "target_status": "picked_up"}

    def test_notify_without_recipient(self, client, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        item = _create(client, headers)

        response = client.post(f"{BASE}/{item['id']}/notify", headers=headers)

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "recipient_id"}

    def test_edit_terminal_item(self, client, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        item = _create(client, headers)
        client.post(f"{BASE}/{item['id']}/mark-other", headers=headers)

        response = client.patch(f"{BASE}/{item['id']}", json={"notes": "late"}, headers=headers)

        assert response.status_code == 409

    def test_unknown_item(self, client, auth_headers, staff_profile):
        response = client.get(f"{BASE}/9999", headers=auth_headers(staff_profile))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unknown_mail_room_selection(self, client, auth_headers, staff_profile):
        response = client.get(f"{BASE}/pending", params={"mail_room_id": 9999}, headers=auth_headers(staff_profile))

        assert response.status_code == 404


class TestListing:
    """Queues, history and visibility"""

    def test_pending_queue_is_scoped_to_selected_mail_room(self, client, db_session, auth_headers, staff_profile, organization):
        annex = MailRoom(organization_id=organization.id, name="Annex")
        db_session.add(annex)
        db_session.commit()
        headers = auth_headers(staff_profile)
        _create(client, headers, tracking_number="LOBBY-1")
        _create(client, headers, mail_room_id=annex.id, tracking_number="ANNEX-1")

        lobby = client.get(f"{BASE}/pending", headers=headers).json()
        annex_queue = client.get(f"{BASE}/pending", params={"mail_room_id": annex.id}, headers=headers).json()

        assert [item["tracking_number"] for item in lobby["items"]] == ["LOBBY-1"]
        assert [item["tracking_number"] for item in annex_queue["items"]] == ["ANNEX-1"]

    def test_history_filters_and_paginates(self, client, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        for number in range(3):
            _create(client, headers, tracking_number=f"TRK-{number}")
        lost = _create(client, headers, tracking_number="TRK-LOST")
        client.post(f"{BASE}/{lost['id']}/mark-lost", headers=headers)

        page = client.get(BASE, params={"page": 1, "per_page": 2}, headers=headers).json()
        only_lost = client.get(BASE, params={"status": "lost"}, headers=headers).json()
        searched = client.get(BASE, params={"search": "trk-1"}, headers=headers).json()

        assert page["total"] == 4
        assert page["total_pages"] == 2
        assert len(page["items"]) == 2
        assert [item["id"] for item in only_lost["items"]] == [lost["id"]]
        assert [item["tracking_number"] for item in searched["items"]] == ["TRK-1"]

    def test_recipient_sees_only_own_items(self, client, auth_headers, staff_profile, recipient_profile, external_person):
        staff_headers = auth_headers(staff_profile)
        mine = _create(client, staff_headers, recipient_id=recipient_profile.id)
        theirs = _create(client, staff_headers, external_recipient_id=external_person.id)
        headers = auth_headers(recipient_profile)

        history = client.get(BASE, headers=headers).json()

        assert [item["id"] for item in history["items"]] == [mine["id"]]
        assert client.get(f"{BASE}/{mine['id']}", headers=headers).status_code == 200
        assert client.get(f"{BASE}/{theirs['id']}", headers=headers).status_code == 404
