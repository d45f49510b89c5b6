#!/usr/bin/env python
"""Seed script to create an organization, its first mailroom and an admin profile.

This script bootstraps a new tenant. It should be run once per organization.
The admin can then create further mailrooms and profiles through the API.

Usage:
    python backend/scripts/seed_organization.py

Environment Variables:
    DATABASE_URL: Relational store connection string
    ORG_NAME: Organization name (default: Example Organization)
    MAIL_ROOM_NAME: Name of the first mailroom (default: Main Mailroom)
    ADMIN_USER_ID: Identity provider user id (UUID, required)
    ADMIN_EMAIL: Email for the admin profile (default: admin@example.com)
    ADMIN_FIRST_NAME / ADMIN_LAST_NAME: Admin display name
    PRINT_TOKEN: Print a development access token for the admin (default: false)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from mailflow.auth.jwt import create_access_token
from mailflow.auth.roles import UserRole
from mailflow.database import get_db_session
from mailflow.models import MailRoom, Organization, UserProfile
from mailflow.tenancy.schemas import OrganizationSettings


def main():
    """Create organization, mailroom and admin profile."""
    admin_user_id_str = os.getenv("ADMIN_USER_ID")
    if not admin_user_id_str:
        print("ERROR: ADMIN_USER_ID environment variable is required")
        print("Example: ADMIN_USER_ID=7c9e6679-7425-40de-944b-e07fc1f90ae7 python seed_organization.py")
        sys.exit(1)

    try:
        admin_user_id = UUID(admin_user_id_str)
    except ValueError:
        print(f"ERROR: Invalid ADMIN_USER_ID format: {admin_user_id_str}")
        print("ADMIN_USER_ID must be a valid UUID")
        sys.exit(1)

    org_name = os.getenv("ORG_NAME", "Example Organization")
    mail_room_name = os.getenv("MAIL_ROOM_NAME", "Main Mailroom")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")

    try:
        with get_db_session() as session:
            existing = session.query(UserProfile).filter(UserProfile.user_id == admin_user_id).first()
            if existing:
                print(f"ERROR: A profile for user {admin_user_id} already exists")
                sys.exit(1)

            organization = Organization(
                name=org_name,
                contact_email=admin_email.lower(),
                settings=OrganizationSettings().model_dump(mode="json"),
            )
            session.add(organization)
            session.flush()

            # Tenant rows below pick up organization_id from the session
            session.info["organization_id"] = organization.id

            mail_room = MailRoom(name=mail_room_name)
            session.add(mail_room)
            session.flush()

            admin = UserProfile(
                user_id=admin_user_id,
                mail_room_id=mail_room.id,
                first_name=os.getenv("ADMIN_FIRST_NAME", "System"),
                last_name=os.getenv("ADMIN_LAST_NAME", "Administrator"),
                email=admin_email,
                role=UserRole.ADMIN,
            )
            session.add(admin)
            session.flush()

            print("SUCCESS: Organization created")
            print(f"  Organization: {organization.id} ({organization.name})")
            print(f"  Mailroom:     {mail_room.id} ({mail_room.name})")
            print(f"  Admin:        {admin.id} ({admin.email})")

    except SQLAlchemyError as e:
        print(f"ERROR: Failed to seed organization: {e}")
        sys.exit(1)

    if os.getenv("PRINT_TOKEN", "false").lower() == "true":
        print(f"  Token:        {create_access_token(admin_user_id, email=admin_email.lower())}")


if __name__ == "__main__":
    main()
