"""Runtime configuration.

Settings are read from environment variables; a ``.env`` file at the repo
root is loaded first if present.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DB_PATH = REPO_ROOT / "attendance.db"

DEFAULT_BATCH_SIZE = 50
DEFAULT_CONCURRENCY = 5
DEFAULT_TASK_QUEUE = "attendance-import"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class Settings:
    """Service settings.

    Attributes:
        db_path: SQLite database holding employees, records and progress
        jibble_client_id: Jibble API key (client credentials)
        jibble_client_secret: Jibble API secret
        jibble_token_cache: Optional path to cache the access token on disk
        batch_size: Employees per orchestrator batch
        concurrency: Concurrent employee imports within a batch
        temporal_endpoint: Temporal host:port
        temporal_namespace: Temporal namespace
        temporal_api_key: Temporal Cloud API key (optional for local servers)
        task_queue: Task queue polled by the worker
        log_json: Emit JSON log lines instead of human-readable ones
        log_level: Root log level name
    """
    db_path: Path = DEFAULT_DB_PATH
    jibble_client_id: Optional[str] = None
    jibble_client_secret: Optional[str] = None
    jibble_token_cache: Optional[Path] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    temporal_endpoint: Optional[str] = None
    temporal_namespace: str = "default"
    temporal_api_key: Optional[str] = None
    task_queue: str = DEFAULT_TASK_QUEUE
    log_json: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build settings from the environment.

    Args:
        env_file: .env file to load (defaults to <repo>/.env when it exists)
    """
    env_path = env_file or (REPO_ROOT / ".env")
    if env_path.exists():
        load_dotenv(env_path)

    token_cache = os.getenv("JIBBLE_TOKEN_CACHE")

    return Settings(
        db_path=Path(os.getenv("ATTENDANCE_DB_PATH", str(DEFAULT_DB_PATH))),
        jibble_client_id=os.getenv("JIBBLE_CLIENT_ID"),
        jibble_client_secret=os.getenv("JIBBLE_CLIENT_SECRET"),
        jibble_token_cache=Path(token_cache) if token_cache else None,
        batch_size=_env_int("IMPORT_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        concurrency=_env_int("IMPORT_CONCURRENCY", DEFAULT_CONCURRENCY),
        temporal_endpoint=os.getenv("TEMPORAL_ENDPOINT"),
        temporal_namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
        temporal_api_key=os.getenv("TEMPORAL_API_KEY"),
        task_queue=os.getenv("TEMPORAL_TASK_QUEUE", DEFAULT_TASK_QUEUE),
        log_json=_env_bool("LOG_JSON"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
