"""Integration tests for organization, directory, dashboard and audit endpoints

Tests cover:
- Context and organization settings endpoints
- Mailroom management and role requirements
- User profile management and /users/me
- External people and the recipients directory
- Dashboard and audit endpoints
- Health, readiness and metrics
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


pytestmark = pytest.mark.integration

API = "/api/v1"


class TestContextAndOrganization:

    def test_context_lists_active_mail_rooms(self, client: TestClient, auth_headers, staff_profile, mail_room):
        response = client.get(f"{API}/context", headers=auth_headers(staff_profile))

        assert response.status_code == 200
        body = response.json()
        assert body["organization"]["name"] == "Acme Corp"
        assert body["mail_room"]["id"] == mail_room.id
        assert [room["name"] for room in body["available_mail_rooms"]] == ["Main Lobby"]
        assert body["role"] == "staff"

    def test_settings_defaults(self, client: TestClient, auth_headers, recipient_profile):
        response = client.get(f"{API}/organization/settings", headers=auth_headers(recipient_profile))

        assert response.status_code == 200
        assert response.json()["aging_threshold_days"] == 5
        assert response.json()["notifications"]["default_channel"] == "email"

    def test_admin_patches_settings(self, client: TestClient, auth_headers, admin_profile):
        response = client.patch(
            f"{API}/organization/settings",
            json={"aging_threshold_days": 7, "notifications": {"enable_sms": True}},
            headers=auth_headers(admin_profile),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["aging_threshold_days"] == 7
        assert body["notifications"]["enable_sms"] is True
        assert body["notifications"]["enable_email"] is True

    def test_invalid_settings_merge(self, client: TestClient, auth_headers, admin_profile):
        response = client.patch(
            f"{API}/organization/settings",
            json={"notifications": {"default_channel": "sms"}},
            headers=auth_headers(admin_profile),
        )

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "settings"}

    def test_staff_cannot_patch_settings(self, client: TestClient, auth_headers, staff_profile):
        response = client.patch(
            f"{API}/organization/settings",
            json={"aging_threshold_days": 7},
            headers=auth_headers(staff_profile),
        )

        assert response.status_code == 403

    def test_admin_updates_organization(self, client: TestClient, auth_headers, admin_profile):
        response = client.patch(
            f"{API}/organization",
            json={"contact_email": "mailroom@acme.example.com", "address": "1 Main St"},
            headers={**auth_headers(admin_profile), "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        assert response.status_code == 200
        assert response.json()["address"] == "1 Main St"

        audit = client.get(
            f"{API}/audit", params={"table_name": "organizations"}, headers=auth_headers(admin_profile)
        ).json()
        assert audit["total"] == 1
        assert audit["entries"][0]["ip_address"] == "203.0.113.7"
        assert audit["entries"][0]["details"] == {"fields": ["address", "contact_email"]}

    def test_blank_organization_name(self, client: TestClient, auth_headers, admin_profile):
        response = client.patch(f"{API}/organization", json={"name": "   "}, headers=auth_headers(admin_profile))

        assert response.status_code == 422

    def test_organization_name_cannot_be_cleared(self, client: TestClient, auth_headers, admin_profile):
        response = client.patch(f"{API}/organization", json={"name": None}, headers=auth_headers(admin_profile))

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "name"}


class TestMailRooms:

    def test_staff_cannot_create(self, client: TestClient, auth_headers, staff_profile):
        response = client.post(f"{API}/mail-rooms", json={"name": "Annex"}, headers=auth_headers(staff_profile))

        assert response.status_code == 403

    def test_create_update_deactivate(self, client: TestClient, auth_headers, admin_profile):
        headers = auth_headers(admin_profile)

        created = client.post(f"{API}/mail-rooms", json={"name": "Annex", "location": "B2"}, headers=headers)
        assert created.status_code == 201
        room_id = created.json()["id"]

        renamed = client.patch(f"{API}/mail-rooms/{room_id}", json={"name": "East Annex"}, headers=headers)
        assert renamed.json()["name"] == "East Annex"

        deactivated = client.post(f"{API}/mail-rooms/{room_id}/deactivate", headers=headers)
        assert deactivated.json()["is_active"] is False

        active = client.get(f"{API}/mail-rooms", params={"active_only": True}, headers=headers).json()
        assert [room["name"] for room in active["mail_rooms"]] == ["Main Lobby"]

    def test_duplicate_name(self, client: TestClient, auth_headers, admin_profile, mail_room):
        response = client.post(f"{API}/mail-rooms", json={"name": "Main Lobby"}, headers=auth_headers(admin_profile))

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "name"}

    def test_blank_name_on_create(self, client: TestClient, auth_headers, admin_profile):
        response = client.post(f"{API}/mail-rooms", json={"name": "   "}, headers=auth_headers(admin_profile))

        assert response.status_code == 422

    def test_blank_name_on_rename(self, client: TestClient, auth_headers, admin_profile, mail_room):
        response = client.patch(
            f"{API}/mail-rooms/{mail_room.id}", json={"name": " \t "}, headers=auth_headers(admin_profile)
        )

        assert response.status_code == 422

    def test_name_is_stored_stripped(self, client: TestClient, auth_headers, admin_profile):
        response = client.post(f"{API}/mail-rooms", json={"name": "  Annex  "}, headers=auth_headers(admin_profile))

        assert response.status_code == 201
        assert response.json()["name"] == "Annex"


class TestUsers:

    def test_admin_creates_profile(self, client: TestClient, auth_headers, admin_profile, mail_room):
        response = client.post(
            f"{API}/users",
            json={
                "user_id": str(uuid4()),
                "first_name": "Nina",
                "last_name": "New",
                "email": "Nina@Acme.example.com",
                "role": "staff",
                "mail_room_id": mail_room.id,
            },
            headers=auth_headers(admin_profile),
        )

        assert response.status_code == 201
        assert response.json()["email"] == "nina@acme.example.com"
        assert response.json()["role"] == "staff"

    def test_duplicate_identity(self, client: TestClient, auth_headers, admin_profile, staff_profile):
        response = client.post(
            f"{API}/users",
            json={
                "user_id": str(staff_profile.user_id),
                "first_name": "Dup",
                "last_name": "Licate",
                "email": "dup@acme.example.com",
            },
            headers=auth_headers(admin_profile),
        )

        assert response.status_code == 422

    def test_role_change_is_audited(self, client: TestClient, auth_headers, admin_profile, staff_profile):
        headers = auth_headers(admin_profile)

        response = client.patch(f"{API}/users/{staff_profile.id}", json={"role": "manager"}, headers=headers)
        assert response.status_code == 200

        entries = client.get(
            f"{API}/audit", params={"table_name": "user_profiles", "record_id": staff_profile.id}, headers=headers
        ).json()["entries"]
        assert entries[0]["details"]["old_role"] == "staff"
        assert entries[0]["details"]["new_role"] == "manager"

    def test_deactivated_profile_is_locked_out(self, client: TestClient, auth_headers, admin_profile, staff_profile):
        client.patch(f"{API}/users/{staff_profile.id}", json={"is_active": False}, headers=auth_headers(admin_profile))

        response = client.get(f"{API}/users/me", headers=auth_headers(staff_profile))

        assert response.status_code == 403

    def test_recipient_updates_own_phone(self, client: TestClient, auth_headers, recipient_profile):
        response = client.patch(f"{API}/users/me", json={"phone": "+15550199"}, headers=auth_headers(recipient_profile))

        assert response.status_code == 200
        assert response.json()["phone"] == "+15550199"
        assert response.json()["role"] == "recipient"

    def test_inactive_mail_room_cannot_be_preferred(self, client: TestClient, auth_headers, admin_profile, recipient_profile):
        headers = auth_headers(admin_profile)
        room_id = client.post(f"{API}/mail-rooms", json={"name": "Annex"}, headers=headers).json()["id"]
        client.post(f"{API}/mail-rooms/{room_id}/deactivate", headers=headers)

        response = client.patch(
            f"{API}/users/me", json={"mail_room_id": room_id}, headers=auth_headers(recipient_profile)
        )

        assert response.status_code == 404
        assert "inactive" in response.json()["message"]

    def test_recipient_cannot_list_users(self, client: TestClient, auth_headers, recipient_profile):
        response = client.get(f"{API}/users", headers=auth_headers(recipient_profile))

        assert response.status_code == 403


class TestPeopleDirectory:

    def test_external_people_and_recipients(self, client: TestClient, auth_headers, staff_profile, recipient_profile):
        headers = auth_headers(staff_profile)

        created = client.post(
            f"{API}/external-people",
            json={"first_name": "Vic", "last_name": "Vendor", "email": "vic@vendor.example.com"},
            headers=headers,
        )
        assert created.status_code == 201

        people = client.get(f"{API}/external-people", params={"search": "vendor"}, headers=headers).json()
        assert people["total"] == 1

        recipients = client.get(f"{API}/recipients", params={"search": "v"}, headers=headers).json()
        entries = {(entry["type"], entry["last_name"]) for entry in recipients["recipients"]}
        assert ("external", "Vendor") in entries

    def test_deactivated_external_person_leaves_directory(self, client: TestClient, auth_headers, staff_profile, external_person):
        headers = auth_headers(staff_profile)

        client.patch(f"{API}/external-people/{external_person.id}", json={"is_active": False}, headers=headers)
        recipients = client.get(f"{API}/recipients", headers=headers).json()

        assert external_person.id not in {
            entry["id"] for entry in recipients["recipients"] if entry["type"] == "external"
        }


class TestDashboardAndAudit:

    def test_dashboard_requires_staff(self, client: TestClient, auth_headers, recipient_profile):
        response = client.get(f"{API}/dashboard/stats", headers=auth_headers(recipient_profile))

        assert response.status_code == 403

    def test_stats_after_intake(self, client: TestClient, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        client.post(f"{API}/mail-items", json={"type": "package", "is_priority": True}, headers=headers)

        stats = client.get(f"{API}/dashboard/stats", headers=headers).json()
        distribution = client.get(f"{API}/dashboard/type-distribution", headers=headers).json()
        delayed = client.get(f"{API}/dashboard/delayed", headers=headers).json()

        assert stats["pending_count"] == 1
        assert stats["priority_count"] == 1
        assert distribution == [{"type": "package", "count": 1}]
        assert delayed == {"items": [], "total": 0}

    def test_mail_volume_after_intake(self, client: TestClient, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        client.post(f"{API}/mail-items", json={"type": "letter", "is_priority": True}, headers=headers)

        volume = client.get(f"{API}/dashboard/mail-volume", headers=headers).json()

        assert volume["total_items"] == 1
        assert volume["weeks"][-1]["total_items"] == 1
        assert volume["weeks"][-1]["priority_items"] == 1
        assert volume["week_over_week_change"] is None
        assert volume["busiest_days"][0]["percentage"] == 100

    def test_mail_volume_requires_staff(self, client: TestClient, auth_headers, recipient_profile):
        response = client.get(f"{API}/dashboard/mail-volume", headers=auth_headers(recipient_profile))

        assert response.status_code == 403

    def test_recent_activity(self, client: TestClient, auth_headers, staff_profile):
        headers = auth_headers(staff_profile)
        client.post(f"{API}/mail-items", json={"type": "letter"}, headers=headers)

        feed = client.get(f"{API}/audit/recent", headers=headers).json()

        assert feed[0]["action"] == "create"
        assert feed[0]["table_name"] == "mail_items"
        assert feed[0]["user_name"] == "Sam Staff"

    def test_full_audit_log_requires_admin(self, client: TestClient, auth_headers, staff_profile):
        assert client.get(f"{API}/audit", headers=auth_headers(staff_profile)).status_code == 403


class TestObservability:

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "healthy"
        assert response.json()["components"]["schema"]["status"] == "healthy"

    def test_ready(self, client: TestClient):
        assert client.get("/ready").json()["status"] == "ready"

    def test_metrics_exposes_mail_counters(self, client: TestClient, auth_headers, staff_profile):
        client.post(f"{API}/mail-items", json={"type": "letter"}, headers=auth_headers(staff_profile))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "mailflow_mail_items_received_total" in response.text

    def test_request_id_is_echoed(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
