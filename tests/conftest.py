"""Test environment: a signing secret must exist before smartlink settings are loaded."""

import os

os.environ.setdefault("JWT_SECRET", "test-only-signing-secret-0123456789abcdef")
os.environ.setdefault("APP_ENV", "dev")
