"""
Shared pytest fixtures for backend tests.
Each test gets its own SQLite file; AI calls are replaced with fakes.
"""
import pytest
import sqlite3
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import ai_client
import ai_debug
import database


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create an isolated test database for each test.
    Uses a temp file (not :memory:) because database.py opens new connections per operation.
    """
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(database, "DATABASE_PATH", db_path)
    monkeypatch.setattr(database, "init_db", lambda: None)

    # Create tables directly (skip alembic for tests)
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE tasks (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            estimated_time INTEGER,
            energy_level INTEGER,
            is_completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
    """)
    conn.commit()
    conn.close()

    yield db_path


@pytest.fixture
def app_client(test_db):
    """Test client for the FastAPI app, backed by the isolated test database."""
    from fastapi.testclient import TestClient
    import main

    with TestClient(main.app) as client:
        yield client


@pytest.fixture
def fake_ai(monkeypatch):
    """
    Replace ai_client.generate_text with a fake.

    Set fake.response to the text the "model" should return, or fake.error to
    an exception to raise. Prompts received are collected in fake.prompts.
    """
    class FakeAI:
        response = "{}"
        error = None
        prompts = []

    fake = FakeAI()
    fake.prompts = []

    async def generate_text(prompt, max_tokens=1024):
        fake.prompts.append(prompt)
        if fake.error is not None:
            raise fake.error
        return fake.response

    monkeypatch.setattr(ai_client, "generate_text", generate_text)
    return fake


@pytest.fixture
def debug_events(monkeypatch):
    """Enable AI_DEBUG and collect emitted events instead of logging them."""
    events = []
    monkeypatch.setenv("AI_DEBUG", "1")
    previous = ai_debug.set_ai_debug_sink(events.append)
    yield events
    ai_debug.set_ai_debug_sink(previous)
