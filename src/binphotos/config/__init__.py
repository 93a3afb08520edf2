"""Application configuration helpers."""

from __future__ import annotations

from .binlookup import BinLookupConfig, get_binlookup_config
from .env import optional_env, optional_env_list, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .github import GitHubConfig, get_github_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .onebot import OneBotConfig, get_onebot_config
from .storage import database_uri
from .telegram import TelegramConfig, get_telegram_config
from .voting import VotingConfig, get_voting_config

__all__ = [
    "BinLookupConfig",
    "ConfigurationError",
    "GitHubConfig",
    "MissingConfigurationError",
    "OneBotConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "TelegramConfig",
    "VotingConfig",
    "configure_logging",
    "database_uri",
    "get_binlookup_config",
    "get_github_config",
    "get_onebot_config",
    "get_telegram_config",
    "get_voting_config",
    "optional_env",
    "optional_env_list",
    "require_env_var",
    "require_env_vars",
]
