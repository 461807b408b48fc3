"""
Configuration helpers read from the environment.
"""

from question_bank.core import config


def test_defaults_are_valid(monkeypatch):
    monkeypatch.delenv("DEFAULT_CATEGORY", raising=False)
    monkeypatch.delenv("MEMBERSHIP_CHUNK_SIZE", raising=False)

    assert config.validate_config() == []
    assert config.get_default_category() in ("WFD", "RS", "RA")
    assert config.get_membership_chunk_size() >= 1


def test_invalid_settings_are_reported(monkeypatch):
    monkeypatch.setenv("DEFAULT_CATEGORY", "xyz")
    monkeypatch.setenv("MEMBERSHIP_CHUNK_SIZE", "0")

    issues = config.validate_config()
    assert "Invalid DEFAULT_CATEGORY: XYZ" in issues
    assert "MEMBERSHIP_CHUNK_SIZE must be >= 1" in issues


def test_runtime_flags_follow_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DB_PATH", str(tmp_path / "nested" / "q.db"))
    monkeypatch.setenv("BULK_STOP_ON_ERROR", "TRUE")
    monkeypatch.setenv("DEBUG", "false")

    assert config.get_db_path() == str(tmp_path / "nested" / "q.db")
    assert config.bulk_stop_on_error() is True
    assert config.debug_enabled() is False

    config.ensure_db_directory()
    assert (tmp_path / "nested").is_dir()
