from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from binphotos import app as app_module
from binphotos.config import (
    BinLookupConfig,
    GitHubConfig,
    OneBotConfig,
    ResilienceConfig,
    TelegramConfig,
    VotingConfig,
)
from binphotos.domain.events import BinQueryEvent, ChatReplyEvent
from binphotos.domain.model import CardMetadata, StrategyKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from binphotos.domain.model import Submission

GITHUB = GitHubConfig(
    owner="octo",
    repo="bin-photos",
    token="t",
    resilience=ResilienceConfig(name="github", base_url="https://api.github.com"),
)
LOOKUP = BinLookupConfig(
    lookup_url="https://lookup.example",
    metadata=ResilienceConfig(name="binlookup"),
    images=ResilienceConfig(name="images"),
)
TELEGRAM = TelegramConfig(
    bot_token="t",
    chat_ids=("-100", "-200"),
    resilience=ResilienceConfig(name="telegram", base_url="https://api.telegram.org/bott/"),
)
ONEBOT = OneBotConfig(ws_url="ws://127.0.0.1:3001", admin_group_ids=(100, 200))


@pytest.fixture
def no_optional_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "ONEBOT_WS_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.usefixtures("no_optional_env")
def test_tracker_only_setup_has_no_strategies(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    two_url_submission: Submission,
) -> None:
    services = app_module.build_services(
        github=GITHUB,
        binlookup=LOOKUP,
        voting=VotingConfig(),
        unit_of_work_factory=uow_factory,
    )

    assert services.engine.group_chat is None
    assert services.engine.polls is None
    assert services.engine.single_link is None
    assert services.query is None
    assert services.onebot is None
    assert services.telegram is None
    assert services.engine.strategies_for(two_url_submission) == []


def test_full_setup_wires_every_strategy(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    two_url_submission: Submission,
) -> None:
    services = app_module.build_services(
        github=GITHUB,
        telegram=TELEGRAM,
        onebot=ONEBOT,
        binlookup=LOOKUP,
        voting=VotingConfig(),
        unit_of_work_factory=uow_factory,
    )

    assert services.onebot is not None
    assert services.telegram is not None
    assert services.query is not None
    assert services.engine.strategies_for(two_url_submission) == [
        StrategyKind.POLL,
        StrategyKind.GROUP_CHAT,
    ]


@pytest.mark.asyncio
async def test_chat_events_are_routed(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    services = app_module.build_services(
        github=GITHUB,
        telegram=TELEGRAM,
        onebot=ONEBOT,
        binlookup=LOOKUP,
        voting=VotingConfig(),
        unit_of_work_factory=uow_factory,
    )
    queries: list[BinQueryEvent] = []
    votes: list[object] = []

    class QueryStub:
        async def handle(self, event: BinQueryEvent) -> None:
            queries.append(event)

    async def engine_handle(event: object) -> None:
        votes.append(event)

    services.query = QueryStub()  # type: ignore[assignment]
    services.engine.handle = engine_handle  # type: ignore[method-assign]
    query = BinQueryEvent(bin="411111", user_id=1, group_id=100)
    reply = ChatReplyEvent(channel_id=100, reply_to_message_id="5", voter_id="1", text="approve")

    await services.handle_chat_event(query)
    await services.handle_chat_event(reply)

    assert queries == [query]
    assert votes == [reply]


def test_check_bin_renders_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    class LookupStub:
        def __init__(self, *, config: BinLookupConfig) -> None:
            assert config is LOOKUP

        async def fetch_metadata(self, bin_: str) -> CardMetadata:
            return CardMetadata(bin=bin_, brand="VISA")

    monkeypatch.setattr(app_module, "BinLookupClient", LookupStub)

    summary = app_module.check_bin("411111", config=LOOKUP)

    assert summary.splitlines()[:2] == ["BIN: 411111", "Brand: VISA"]


@pytest.mark.asyncio
@pytest.mark.usefixtures("no_optional_env")
async def test_loop_iterations_log_and_continue(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    caplog: pytest.LogCaptureFixture,
) -> None:
    services = app_module.build_services(
        github=GITHUB,
        onebot=ONEBOT,
        binlookup=LOOKUP,
        voting=VotingConfig(),
        unit_of_work_factory=uow_factory,
    )
    calls: list[str] = []

    async def failing_tick() -> list[Submission]:
        calls.append("tick")
        raise RuntimeError("tick exploded")

    async def failing_sweep(now: object = None) -> list[object]:
        calls.append("sweep")
        raise RuntimeError("sweep exploded")

    services.ingest.tick = failing_tick  # type: ignore[method-assign]
    services.engine.sweep = failing_sweep  # type: ignore[method-assign]

    await services.ingest_once()
    await services.sweep_once()

    assert calls == ["tick", "sweep"]
    assert "Ingest tick failed" in caplog.text
    assert "Vote sweep failed" in caplog.text
