"""
Bootstrap an administrator.

Roles can only be changed by an admin, so the first one has to come from here:
    python scripts/create_admin.py admin@example.com 'a-long-password' --name "Store Admin"

If the email already has an account, its profile is promoted to admin instead.
"""

import argparse
import os
import sys

# --- PATH FIX ---
# Get the path to the project root (one level up from 'scripts')
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from sqlmodel import Session  # noqa: E402

from storefront.config import get_settings  # noqa: E402
from storefront.errors import StorefrontError  # noqa: E402
from storefront.identity import IdentityGateway  # noqa: E402
from storefront.models import Profile, Role  # noqa: E402
from storefront.utils.db import create_db_and_tables, engine  # noqa: E402


def create_admin(session: Session, email: str, password: str, full_name: str | None) -> Profile:
    identity = IdentityGateway(session, get_settings())
    email = email.lower()

    account = identity.find_by_email(email)
    if account:
        account_id = account.id
    else:
        account_id = identity.sign_up(email, password, full_name=full_name).id

    profile = session.get(Profile, account_id)
    if profile:
        profile.role = Role.ADMIN
    else:
        profile = Profile(id=account_id, email=email, full_name=full_name, role=Role.ADMIN)

    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a storefront administrator")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None, help="Full name for a newly created account")
    args = parser.parse_args(argv)

    create_db_and_tables()

    with Session(engine) as session:
        try:
            profile = create_admin(session, args.email, args.password, args.name)
        except StorefrontError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Admin ready: {profile.email} (ID: {profile.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
