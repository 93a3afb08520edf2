from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from binphotos.config import storage


def test_data_dir_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("BINPHOTOS_DATA_DIR", str(custom))

    assert storage.data_dir() == custom.resolve()


def test_data_dir_falls_back_to_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("BINPHOTOS_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert storage.data_dir() == (tmp_path / "binphotos").resolve()


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.database_uri() == "sqlite:///override.db"


def test_explicit_database_path_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.database_uri(str(tmp_path / "votes.db")) == f"sqlite+pysqlite:///{tmp_path / 'votes.db'}"


def test_database_uri_defaults_to_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "data"
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("BINPHOTOS_DATA_DIR", str(custom))

    assert storage.database_uri() == f"sqlite+pysqlite:///{custom.resolve() / 'binphotos.db'}"
    assert custom.exists()
