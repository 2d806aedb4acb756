"""Root conftest — shared test configuration."""

import os

# Deterministic gate config; must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOCK_PIN", "1234")
os.environ.setdefault("HARDCORE_PIN", "9999")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("LOG_FORMAT", "text")
