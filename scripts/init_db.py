#!/usr/bin/env python3
"""Create the durable backend's tables"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vendorhub import create_app
from vendorhub.extensions import db

def init_database():
    app = create_app({"STORAGE_MODE": "database", "SEED_DEFAULT_ACCOUNTS": False})
    with app.app_context():
        db.create_all()
        print("✅ Database tables initialized successfully")

if __name__ == "__main__":
    init_database()
