import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/jobly.db"
DEFAULT_LOG_LEVEL = "INFO"


def load_env() -> None:
    """Load .env from project root if present.
    Variables already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_log_level() -> str:
    return os.getenv("JOBLY_LOG_LEVEL", DEFAULT_LOG_LEVEL)


def get_log_dir() -> Optional[Path]:
    """Directory for log files; None disables file logging."""
    log_dir = os.getenv("JOBLY_LOG_DIR")
    return Path(log_dir) if log_dir else None
