"""
Shared fixtures: every test that touches the store gets its own SQLite file.
"""

import os
import tempfile

import pytest

# Modules initialise the database on import; keep that away from ./data
os.environ["DB_PATH"] = os.path.join(tempfile.mkdtemp(prefix="question_bank_"), "import.db")
os.environ.setdefault("DEBUG", "true")


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """Create a temporary database for one test."""
    db_path = tmp_path / "questions.db"
    monkeypatch.setenv("DB_PATH", str(db_path))

    from question_bank.core import db
    db.init_db()

    yield str(db_path)
