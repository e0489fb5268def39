"""
Pytest configuration and fixtures
"""
import json
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

# Ensure project root and tests directory are on sys.path for imports
tests_dir = Path(__file__).parent
project_root = tests_dir.parent
for path in (project_root, tests_dir):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Tests always run against an in-memory SQLite database
os.environ["JSON_SYNCER_DATABASE_URL"] = "sqlite://"
os.environ["JSON_SYNCER_LOG_FILE_ENABLED"] = "false"
os.environ.setdefault("JSON_SYNCER_IMPORT_ATOMIC", "false")

from json_syncer.core.database import Base, get_engine, get_session_local  # noqa: E402

import stubs  # noqa: E402,F401

FIXTURES_DIR = tests_dir / "fixtures"


@pytest.fixture(scope="function")
def db() -> Session:
    """Create a database session on a freshly created schema"""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    SessionLocal = get_session_local()
    session = SessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function", autouse=True)
def reset_hook_calls():
    stubs.HOOK_CALLS.clear()
    yield
    stubs.HOOK_CALLS.clear()


@pytest.fixture(scope="function")
def import_json() -> str:
    """Raw text of the reference import document"""
    return (FIXTURES_DIR / "import.json").read_text(encoding="utf-8")


@pytest.fixture(scope="function")
def import_data(import_json) -> dict:
    """Decoded reference import document"""
    return json.loads(import_json)
