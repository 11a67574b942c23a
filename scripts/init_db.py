#!/usr/bin/env python3
"""Create the requests table directly (local SQLite setups without migrations). Idempotent."""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from skyweave import create_app
from skyweave.extensions import db
import skyweave.models  # noqa: F401

if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
        print(f"Tables ready at {app.config['SQLALCHEMY_DATABASE_URI']}")
