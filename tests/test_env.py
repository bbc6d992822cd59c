"""
Tests for environment configuration.
"""

import os

from jobly.env import (
    DEFAULT_DATABASE_URL,
    get_database_url,
    get_log_dir,
    get_log_level,
    load_env,
)


class TestSettings:
    """Test settings lookups."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("JOBLY_LOG_LEVEL", raising=False)
        monkeypatch.delenv("JOBLY_LOG_DIR", raising=False)

        assert get_database_url() == DEFAULT_DATABASE_URL
        assert get_log_level() == "INFO"
        assert get_log_dir() is None

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/jobly")
        monkeypatch.setenv("JOBLY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("JOBLY_LOG_DIR", str(tmp_path))

        assert get_database_url() == "postgresql://localhost/jobly"
        assert get_log_level() == "DEBUG"
        assert get_log_dir() == tmp_path


class TestLoadEnv:
    """Test .env loading."""

    def test_loads_dotenv_file(self, monkeypatch, tmp_path):
        # Register the variable so monkeypatch restores its absence afterwards
        monkeypatch.setenv("DATABASE_URL", "placeholder")
        monkeypatch.delenv("DATABASE_URL")
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("# settings\nDATABASE_URL=sqlite:///from-dotenv.db\n")

        load_env()

        assert os.environ["DATABASE_URL"] == "sqlite:///from-dotenv.db"

    def test_existing_environment_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("DATABASE_URL=sqlite:///from-dotenv.db\n")

        load_env()

        assert get_database_url() == "sqlite:///from-env.db"

    def test_missing_file_is_ignored(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        load_env()
