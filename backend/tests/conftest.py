"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach real storage, Document AI or the production database
os.environ.setdefault("UPLOAD_TOKEN_SECRET", "test-upload-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
