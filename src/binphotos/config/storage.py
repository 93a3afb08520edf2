"""Where the vote database lives."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "binphotos"
DEFAULT_DB_FILENAME: Final[str] = "binphotos.db"


def data_dir() -> Path:
    """``BINPHOTOS_DATA_DIR``, else the platform's per-user data directory."""

    override = os.getenv("BINPHOTOS_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def database_uri(database_path: str | None = None) -> str:
    """SQLAlchemy URI: an explicit file, then ``DATABASE_URI``, then the data directory."""

    if database_path:
        return f"sqlite+pysqlite:///{Path(database_path).expanduser()}"
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return env_uri
    directory = data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return f"sqlite+pysqlite:///{directory / DEFAULT_DB_FILENAME}"
