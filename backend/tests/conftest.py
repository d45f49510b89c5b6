"""Pytest fixtures for MailFlow tests.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database (fresh schema per test)
- A test organization with a mailroom
- User profiles with different roles (admin, staff, recipient)
- An external person
- A FastAPI TestClient bound to the test session, and bearer headers

Usage:
    def test_pending_queue(client, staff_profile, auth_headers):
        response = client.get("/api/v1/mail-items/pending", headers=auth_headers(staff_profile))
        assert response.status_code == 200
"""

import os
import sys
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))
sys.path.insert(0, str(Path(__file__).parent))

from typing import Callable, Dict, Generator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mailflow.auth.jwt import create_access_token
from mailflow.auth.roles import UserRole
from mailflow.database import SessionLocal, engine, get_db
from mailflow.models import Base, ExternalPerson, MailRoom, Organization, UserProfile
from mailflow.tenancy.context import MailroomContext, resolve_context

# Multi-organization fixtures live in their own module
from fixtures.multi_org import other_organization, other_mail_room, other_staff_profile, other_recipient_profile  # noqa: E402,F401


def make_profile(
    db: Session,
    organization: Organization,
    role: UserRole,
    first_name: str,
    last_name: str,
    email: str,
    mail_room: MailRoom | None = None,
    phone: str | None = None,
) -> UserProfile:
    profile = UserProfile(
        user_id=uuid4(),
        organization_id=organization.id,
        mail_room_id=mail_room.id if mail_room else None,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        role=role,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    Each test gets a clean database state.
    """
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def organization(db_session: Session) -> Organization:
    """Create a test organization with default settings."""
    org = Organization(name="Acme Corp", contact_email="facilities@acme.example.com", settings={})
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture(scope="function")
def mail_room(db_session: Session, organization: Organization) -> MailRoom:
    room = MailRoom(organization_id=organization.id, name="Main Lobby", location="Building A")
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture(scope="function")
def admin_profile(db_session: Session, organization: Organization, mail_room: MailRoom) -> UserProfile:
    return make_profile(
        db_session, organization, UserRole.ADMIN, "Ada", "Admin", "admin@acme.example.com", mail_room=mail_room,
    )


@pytest.fixture(scope="function")
def staff_profile(db_session: Session, organization: Organization, mail_room: MailRoom) -> UserProfile:
    return make_profile(
        db_session, organization, UserRole.STAFF, "Sam", "Staff", "staff@acme.example.com", mail_room=mail_room,
    )


@pytest.fixture(scope="function")
def recipient_profile(db_session: Session, organization: Organization) -> UserProfile:
    return make_profile(
        db_session, organization, UserRole.RECIPIENT, "Rita", "Recipient", "rita@acme.example.com",
        phone="+15550100",
    )


@pytest.fixture(scope="function")
def external_person(db_session: Session, organization: Organization) -> ExternalPerson:
    person = ExternalPerson(
        organization_id=organization.id,
        first_name="Eve",
        last_name="Visitor",
        email="eve@visitor.example.com",
    )
    db_session.add(person)
    db_session.commit()
    db_session.refresh(person)
    return person


@pytest.fixture(scope="function")
def staff_ctx(db_session: Session, staff_profile: UserProfile) -> MailroomContext:
    """Resolved context of the staff profile (its assigned mailroom)."""
    ctx = resolve_context(db_session, staff_profile)
    db_session.info["organization_id"] = ctx.organization_id
    return ctx


@pytest.fixture(scope="function")
def auth_headers() -> Callable[[UserProfile], Dict[str, str]]:
    """Build bearer headers for a profile, as the identity provider would."""

    def _headers(profile: UserProfile) -> Dict[str, str]:
        token = create_access_token(user_id=profile.user_id, email=profile.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client that uses the test database session.

    Requests are unauthenticated unless headers from auth_headers are passed.
    """
    from mailflow.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()
