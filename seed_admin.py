"""
Create an administrator account, or promote an existing user.

Usage: python seed_admin.py [--email admin@example.com] [--password secret]
Defaults come from ADMIN_EMAIL / ADMIN_PASSWORD.
"""
import argparse
import logging
import sys
from typing import Optional

import config
import database
from schemas import User
from security import normalize_email, pwd_context

logger = logging.getLogger(__name__)


def seed_admin(email: str, password: Optional[str]) -> str:
    """Return "created", "promoted" or "exists"."""
    email = normalize_email(email)
    user = database.find_document("user", {"email": email})
    if user:
        if user.get("is_admin"):
            logger.info("Admin user already exists: %s", email)
            return "exists"
        database.update_document("user", user["_id"], {"is_admin": True})
        logger.info("Existing user promoted to admin: %s", email)
        return "promoted"
    if not password:
        raise ValueError("A password is required to create a new admin user")
    database.create_document("user", User(email=email, password_hash=pwd_context.hash(password), is_admin=True))
    logger.info("Admin user created: %s", email)
    return "created"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--email", default=config.ADMIN_EMAIL)
    parser.add_argument("--password", default=config.ADMIN_PASSWORD)
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(message)s")
    try:
        result = seed_admin(args.email, args.password)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
