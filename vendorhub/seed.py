"""Default accounts every fresh backend starts with."""
from __future__ import annotations

import logging
from typing import Mapping

from .entities import User
from .storage.base import Storage
from .users import UserService

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = (
    {
        "username": "admin",
        "email": "admin@islandloaf.com",
        "full_name": "Admin User",
        "business_name": "IslandLoaf Admin",
        "business_type": "stays",
        "role": "admin",
        "password_key": "DEFAULT_ADMIN_PASSWORD",
    },
    {
        "username": "vendor",
        "email": "vendor@beachsidevillas.com",
        "full_name": "Beachside Villas",
        "business_name": "Beachside Villas",
        "business_type": "stays",
        "role": "vendor",
        "password_key": "DEFAULT_VENDOR_PASSWORD",
    },
)


def seed_default_accounts(storage: Storage, config: Mapping[str, object]) -> list[User]:
    """Create the default admin and vendor when they are missing; returns the new users."""
    users = UserService(storage)
    created = []
    for account in DEFAULT_ACCOUNTS:
        if storage.get_user_by_email(account["email"]) or storage.get_user_by_username(account["username"]):
            continue
        draft = {key: value for key, value in account.items() if key != "password_key"}
        draft["password"] = config[account["password_key"]]
        created.append(users.create_user(draft))
        logger.info("Seeded default %s account %r", account["role"], account["username"])
    return created
