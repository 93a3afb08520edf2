"""OneBot (group-chat) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, optional_env_list, require_env_vars
from .errors import ConfigurationError

ONEBOT_CALL_TIMEOUT_SECONDS = 15.0
ONEBOT_RECONNECT_DELAY_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class OneBotConfig:
    ws_url: str
    admin_group_ids: tuple[int, ...]
    access_token: str | None = None
    call_timeout_seconds: float = ONEBOT_CALL_TIMEOUT_SECONDS
    reconnect_delay_seconds: float = ONEBOT_RECONNECT_DELAY_SECONDS


def parse_group_ids(raw_ids: tuple[str, ...]) -> tuple[int, ...]:
    group_ids: list[int] = []
    for raw in raw_ids:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid group id: {raw!r}") from exc
        if value > 0 and value not in group_ids:
            group_ids.append(value)
    return tuple(group_ids)


def get_onebot_config() -> OneBotConfig:
    values = require_env_vars(("ONEBOT_WS_URL",))
    return OneBotConfig(
        ws_url=values["ONEBOT_WS_URL"],
        admin_group_ids=parse_group_ids(optional_env_list("ADMIN_GROUP_ID")),
        access_token=optional_env("ONEBOT_ACCESS_TOKEN"),
    )
