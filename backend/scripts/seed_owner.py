#!/usr/bin/env python
"""Seed script to create an organization and its first owner.

Run once per new tenant during setup. The owner can then invite additional
users through the API. Tables are created when missing.

Usage:
    python backend/scripts/seed_owner.py

Environment Variables:
    DATABASE_URL: Database connection string
    PASSWORD_PEPPER: Password hashing pepper (required)
    ORG_NAME: Name of the organization to create (default: Demo Agency)
    OWNER_EMAIL: Email for the owner (default: owner@example.com)
    OWNER_PASSWORD: Password for the owner (default: OwnerPass123)
    OWNER_NAME: Display name for the owner (default: Organization Owner)
"""

import os
import sys

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from clientportal.auth.password import hash_password, validate_password_strength
from clientportal.config import get_settings
from clientportal.database import create_db_engine
from clientportal.models import (
    Base,
    Membership,
    MembershipRole,
    MembershipStatus,
    Organization,
    User,
)


def main():
    """Create an organization with an active owner membership."""
    org_name = os.getenv("ORG_NAME", "Demo Agency")
    owner_email = os.getenv("OWNER_EMAIL", "owner@example.com").lower()
    owner_password = os.getenv("OWNER_PASSWORD", "OwnerPass123")
    owner_name = os.getenv("OWNER_NAME", "Organization Owner")

    is_valid, error_msg = validate_password_strength(owner_password)
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    engine = create_db_engine(get_settings().DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()

    try:
        existing_user = session.execute(
            select(User).where(User.email == owner_email)
        ).scalar_one_or_none()

        if existing_user:
            print(f"ERROR: User with email {owner_email} already exists")
            sys.exit(1)

        org = Organization(name=org_name)
        owner = User(email=owner_email, name=owner_name, password_hash=hash_password(owner_password))
        session.add_all([org, owner])
        session.flush()

        session.add(Membership(
            user_id=owner.id,
            organization_id=org.id,
            role=MembershipRole.OWNER.value,
            status=MembershipStatus.ACTIVE.value,
        ))
        session.commit()

        print("SUCCESS: Organization and owner created")
        print(f"  Org:   {org.id} ({org.name})")
        print(f"  Owner: {owner.id} ({owner.email})")

    except Exception as e:
        session.rollback()
        print(f"ERROR: Failed to seed organization: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
