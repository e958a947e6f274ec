#!/usr/bin/env python3
"""Seed the durable backend with the default admin and vendor accounts"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vendorhub import create_app
from vendorhub.seed import seed_default_accounts
from vendorhub.storage import get_storage

def seed_database():
    app = create_app({"STORAGE_MODE": "database", "SEED_DEFAULT_ACCOUNTS": False})
    with app.app_context():
        created = seed_default_accounts(get_storage(), app.config)
        if not created:
            print("ℹ️  Default accounts already exist, nothing to do")
        for user in created:
            print(f"✅ Created {user.role} account {user.username} <{user.email}>")

if __name__ == "__main__":
    seed_database()
