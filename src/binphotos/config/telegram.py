"""Telegram poll-bot configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, optional_env_list, require_env_vars
from .errors import MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

TELEGRAM_API_URL = "https://api.telegram.org"
TELEGRAM_TIMEOUT_SECONDS = 20.0
TELEGRAM_LONG_POLL_SECONDS = 25


@dataclass(frozen=True, slots=True)
class TelegramConfig:
    bot_token: str
    chat_ids: tuple[str, ...]
    resilience: ResilienceConfig
    operator_id: str | None = None
    long_poll_seconds: int = TELEGRAM_LONG_POLL_SECONDS

    @property
    def primary_chat_id(self) -> str:
        return self.chat_ids[0]


def get_telegram_config(*, resilience: ResilienceConfig | None = None) -> TelegramConfig:
    values = require_env_vars(("TELEGRAM_BOT_TOKEN",))
    chat_ids = optional_env_list("TELEGRAM_CHAT_ID")
    if not chat_ids:
        raise MissingConfigurationError("Missing configuration for: TELEGRAM_CHAT_ID")
    token = values["TELEGRAM_BOT_TOKEN"]
    return TelegramConfig(
        bot_token=token,
        chat_ids=chat_ids,
        operator_id=optional_env("TELEGRAM_OPERATOR_ID"),
        resilience=resilience
        or ResilienceConfig(
            name="telegram",
            base_url=f"{TELEGRAM_API_URL}/bot{token}/",
            timeout_seconds=TELEGRAM_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        ),
    )
