"""GitHub issue-tracker configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

GITHUB_API_URL = "https://api.github.com"
GITHUB_WEB_URL = "https://github.com"
GITHUB_TIMEOUT_SECONDS = 15.0
USER_AGENT = "bin-to-photos/1.0"


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    owner: str
    repo: str
    token: str
    resilience: ResilienceConfig

    def issue_url(self, number: int) -> str:
        return f"{GITHUB_WEB_URL}/{self.owner}/{self.repo}/issues/{number}"

    def report_url(self) -> str:
        return f"{GITHUB_WEB_URL}/{self.owner}/{self.repo}/issues/new?template=bin-photos.md"


def get_github_config(*, resilience: ResilienceConfig | None = None) -> GitHubConfig:
    values = require_env_vars(("GITHUB_OWNER", "GITHUB_REPO", "GITHUB_TOKEN"))
    return GitHubConfig(
        owner=values["GITHUB_OWNER"],
        repo=values["GITHUB_REPO"],
        token=values["GITHUB_TOKEN"],
        resilience=resilience
        or ResilienceConfig(
            name="github",
            base_url=GITHUB_API_URL,
            timeout_seconds=GITHUB_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={
                "User-Agent": USER_AGENT,
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {values['GITHUB_TOKEN']}",
            },
        ),
    )
