"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_LIST_SEPARATORS = re.compile(r"[;,\s]+")


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value.strip()

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def optional_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def split_env_list(raw: str | None) -> tuple[str, ...]:
    """Split a comma, semicolon or whitespace separated id list."""

    if not raw:
        return ()
    return tuple(item for item in _LIST_SEPARATORS.split(raw.strip()) if item)


def optional_env_list(name: str) -> tuple[str, ...]:
    return split_env_list(os.getenv(name))
