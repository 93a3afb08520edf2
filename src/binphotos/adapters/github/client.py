"""GitHub issues client used as the submission tracker."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from binphotos.adapters.http_resilience import ResilientClient
from binphotos.domain.errors import AdapterUnavailable

from .schema import ErrorPayload, IssuePayload
from .translator import parse_issue

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.config.github import GitHubConfig
    from binphotos.config.http_resilience import ResilienceConfig
    from binphotos.domain.ports.tracker import TrackerIssue

log = getLogger(__name__)

PER_PAGE = 100
MAX_PAGES = 50

_ISSUE_LIST = TypeAdapter(list[IssuePayload])


class GitHubAPIError(AdapterUnavailable):
    """Raised when the GitHub API is unreachable or rejects a request."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class GitHubIssueTracker:
    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    @property
    def owner(self) -> str:
        return self._config.owner

    @property
    def repo(self) -> str:
        return self._config.repo

    def issue_url(self, number: int) -> str:
        return self._config.issue_url(number)

    async def list_open_issues(self) -> list[TrackerIssue]:
        issues: list[TrackerIssue] = []
        async with self._client_factory(self._resilience) as client:
            for page in range(1, MAX_PAGES + 1):
                response = await self._call(
                    client,
                    "GET",
                    self._path("issues"),
                    params={"state": "open", "per_page": PER_PAGE, "page": page},
                )
                try:
                    payloads = _ISSUE_LIST.validate_python(response.json())
                except (ValueError, ValidationError) as exc:
                    raise GitHubAPIError("Unexpected GitHub issue list payload") from exc

                issues.extend(parse_issue(item) for item in payloads if not item.is_pull_request)
                if len(payloads) < PER_PAGE:
                    break
        log.debug("Fetched %d open issue(s) from %s/%s", len(issues), self.owner, self.repo)
        return issues

    async def close_issue(self, number: int) -> None:
        async with self._client_factory(self._resilience) as client:
            await self._call(client, "PATCH", self._path(f"issues/{number}"), json={"state": "closed"})
        log.info("Closed issue #%d", number)

    async def comment(self, number: int, text: str) -> None:
        async with self._client_factory(self._resilience) as client:
            await self._call(
                client, "POST", self._path(f"issues/{number}/comments"), json={"body": text}
            )
        log.info("Commented on issue #%d", number)

    def _path(self, suffix: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/{suffix}"

    async def _call(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
        json: object = None,
    ) -> httpx.Response:
        try:
            response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"GitHub {method} {path} failed: {exc}") from exc

        if response.is_error:
            message = response.reason_phrase
            try:
                message = ErrorPayload.model_validate(response.json()).message or message
            except (ValueError, ValidationError):
                pass
            log.error("GitHub API error %s on %s %s: %s", response.status_code, method, path, message)
            raise GitHubAPIError(
                f"GitHub {method} {path} -> {response.status_code}: {message}",
                status=response.status_code,
            )
        return response
