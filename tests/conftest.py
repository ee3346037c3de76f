"""
Shared test setup.

Settings are required at import time (DATABASE_URL, JWT_SECRET), so they must
be in the environment before any fleetdesk module is imported. BCRYPT_ROUNDS
is dropped to the bcrypt minimum to keep tests fast.
"""

import os

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-only-signing-secret-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
