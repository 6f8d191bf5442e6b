"""Pytest configuration and fixtures."""

import os
import secrets
import sys
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

# For unit tests, set mock values ONLY if not running integration tests
if not os.environ.get("RUN_INTEGRATION"):
    os.environ.setdefault("JWT_SECRET_KEY", _TEST_JWT_SECRET)
    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./notesync-test.db")
else:
    # Integration runs point DATABASE_URL at a real Postgres from .env
    from pathlib import Path

    from dotenv import load_dotenv

    env_path = Path(__file__).parent.parent / ".env"
    if not os.environ.get("CONFIRM_INTEGRATION_CREDENTIALS"):
        print(
            "Integration tests use REAL credentials from .env; "
            "set CONFIRM_INTEGRATION_CREDENTIALS=yes to proceed.",
            file=sys.stderr,
        )
        pytest.exit(
            "Integration tests require CONFIRM_INTEGRATION_CREDENTIALS=yes",
            returncode=1,
        )
    load_dotenv(env_path, override=True)

# Per-IP limits would trip across the many requests of one test run
os.environ["RATE_LIMIT_ENABLED"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from notesync import database as database_module  # noqa: E402
from notesync.config import get_settings  # noqa: E402
from notesync.database import Database  # noqa: E402
from notesync.main import app  # noqa: E402

# Use clearly invalid test IDs that cannot collide with production IDs
TEST_USER_ID = "usr_TEST_ONLY_000001"
OTHER_USER_ID = "usr_TEST_ONLY_000002"


def _mint_token(user_id: str, /, **claims) -> str:
    settings = get_settings()
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
        "iat": datetime.now(timezone.utc),
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def user_id():
    return TEST_USER_ID


@pytest.fixture
def other_user_id():
    return OTHER_USER_ID


@pytest.fixture
def make_auth_headers():
    """Build bearer headers for any user id and extra claims."""

    def _make(user_id: str = TEST_USER_ID, /, **claims) -> dict:
        return {"Authorization": f"Bearer {_mint_token(user_id, **claims)}"}

    return _make


@pytest.fixture
def auth_headers(make_auth_headers):
    """Create auth headers with a test token."""
    return make_auth_headers(TEST_USER_ID)


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite store per test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'sync.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app_database(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite store; the lifespan creates the tables."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setattr(database_module, "_database", db)
    return db


@pytest.fixture
def client(app_database):
    """Create a test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Payload builders (camelCase, as devices send them)
# =============================================================================


@pytest.fixture
def note_item():
    def _make(client_id: str, last_modified: int = 1_700_000_000_000, **fields) -> dict:
        item = {
            "id": client_id,
            "content": f"content of {client_id}",
            "lastModified": last_modified,
            "createdAt": 1_690_000_000_000,
        }
        item.update(fields)
        return item

    return _make


@pytest.fixture
def folder_item():
    def _make(client_id: str, workspace_id: str = "workspace_1", **fields) -> dict:
        item = {
            "id": client_id,
            "name": f"Folder {client_id}",
            "createdAt": 1_690_000_000_000,
            "workspaceId": workspace_id,
        }
        item.update(fields)
        return item

    return _make


@pytest.fixture
def workspace_item():
    def _make(client_id: str, name: str | None = None, is_default: bool = False, **fields) -> dict:
        item = {"id": client_id, "name": name or f"Workspace {client_id}", "isDefault": is_default}
        item.update(fields)
        return item

    return _make
