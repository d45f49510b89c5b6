"""Unit tests for write-time tenant isolation

The before_flush guard rejects rows that point into another organization,
no matter whether they were written through a service or directly.

Tests cover:
- UserProfile.mail_room_id across organizations
- MailItem mailroom / recipient / processed_by across organizations
- Notification and Pickup references
- organization_id auto-population from the session
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from mailflow.auth.roles import UserRole
from mailflow.domain.errors import TenantMismatchError
from mailflow.domain.mail_items import MailItemStatus, MailItemType
from mailflow.models import MailItem, MailRoom, Notification, NotificationType, Pickup, UserProfile


def _item(db: Session, organization_id: int, mail_room_id: int, **fields) -> MailItem:
    item = MailItem(
        organization_id=organization_id,
        mail_room_id=mail_room_id,
        type=MailItemType.LETTER,
        **fields,
    )
    db.add(item)
    return item


class TestUserProfileGuard:
    """A profile's default mailroom must be in its own organization"""

    def test_profile_with_foreign_mail_room_is_rejected(self, db_session, organization, other_mail_room):
        db_session.add(UserProfile(
            user_id=uuid4(),
            organization_id=organization.id,
            mail_room_id=other_mail_room.id,
            first_name="Mallory",
            last_name="Mixed",
            email="mallory@acme.example.com",
            role=UserRole.STAFF,
        ))

        with pytest.raises(TenantMismatchError) as exc_info:
            db_session.flush()

        assert exc_info.value.field == "mail_room_id"
        db_session.rollback()

    def test_reassigning_existing_profile_is_rejected(self, db_session, staff_profile, other_mail_room):
        staff_profile.mail_room_id = other_mail_room.id

        with pytest.raises(TenantMismatchError):
            db_session.commit()

        db_session.rollback()

    def test_relationship_assignment_is_checked(self, db_session, staff_profile, other_mail_room):
        staff_profile.mail_room = other_mail_room

        with pytest.raises(TenantMismatchError):
            db_session.flush()

        db_session.rollback()

    def test_same_organization_mail_room_is_accepted(self, db_session, organization, staff_profile):
        annex = MailRoom(organization_id=organization.id, name="Annex")
        db_session.add(annex)
        db_session.flush()

        staff_profile.mail_room_id = annex.id
        db_session.commit()

        assert staff_profile.mail_room_id == annex.id


class TestMailItemGuard:
    """Mail items stay inside their organization"""

    def test_foreign_mail_room(self, db_session, organization, other_mail_room):
        _item(db_session, organization.id, other_mail_room.id)

        with pytest.raises(TenantMismatchError) as exc_info:
            db_session.flush()

        assert exc_info.value.field == "mail_room_id"
        db_session.rollback()

    def test_foreign_recipient(self, db_session, organization, mail_room, other_recipient_profile):
        _item(db_session, organization.id, mail_room.id, recipient_id=other_recipient_profile.id)

        with pytest.raises(TenantMismatchError) as exc_info:
            db_session.flush()

        assert exc_info.value.field == "recipient_id"
        db_session.rollback()

    def test_foreign_processed_by(self, db_session, organization, mail_room, other_staff_profile):
        _item(db_session, organization.id, mail_room.id, processed_by_id=other_staff_profile.id)

        with pytest.raises(TenantMismatchError):
            db_session.flush()

        db_session.rollback()

    def test_default_status_is_pending(self, db_session, organization, mail_room):
        """Inserting a package without a status stores 'pending'"""
        item = MailItem(organization_id=organization.id, mail_room_id=mail_room.id, type="package")
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)

        assert item.status == MailItemStatus.PENDING
        assert item.type == MailItemType.PACKAGE


class TestHistoryRowGuards:
    """Notifications and pickups follow their mail item"""

    def test_notification_for_foreign_recipient(self, db_session, organization, mail_room, recipient_profile, other_recipient_profile):
        item = _item(db_session, organization.id, mail_room.id, recipient_id=recipient_profile.id)
        db_session.flush()
        db_session.add(Notification(
            organization_id=organization.id,
            mail_item_id=item.id,
            recipient_id=other_recipient_profile.id,
            type=NotificationType.EMAIL,
            destination="grace@globex.example.com",
            message="Hello",
        ))

        with pytest.raises(TenantMismatchError):
            db_session.flush()

        db_session.rollback()

    def test_pickup_processed_by_foreign_staff(self, db_session, organization, mail_room, recipient_profile, other_staff_profile):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)
        item = _item(
            db_session, organization.id, mail_room.id,
            recipient_id=recipient_profile.id,
            status=MailItemStatus.NOTIFIED,
            notified_at=now,
        )
        db_session.flush()
        db_session.add(Pickup(
            mail_item_id=item.id,
            recipient_id=recipient_profile.id,
            processed_by_id=other_staff_profile.id,
            picked_up_at=now,
        ))

        with pytest.raises(TenantMismatchError) as exc_info:
            db_session.flush()

        assert exc_info.value.field == "processed_by_id"
        db_session.rollback()


class TestOrganizationAutoPopulation:
    """New rows inherit organization_id from session.info"""

    def test_new_row_gets_session_organization(self, db_session, organization):
        db_session.info["organization_id"] = organization.id
        room = MailRoom(name="Loading Dock")
        db_session.add(room)
        db_session.commit()

        assert room.organization_id == organization.id

    def test_explicit_organization_is_kept(self, db_session, organization, other_organization):
        db_session.info["organization_id"] = organization.id
        room = MailRoom(organization_id=other_organization.id, name="Explicit")
        db_session.add(room)
        db_session.commit()

        assert room.organization_id == other_organization.id
