"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.adapters.binlookup import BinLookupClient
from binphotos.adapters.github import GitHubIssueTracker
from binphotos.adapters.onebot import OneBotClient
from binphotos.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, startup
from binphotos.adapters.telegram import TelegramBot, TelegramUpdatePoller
from binphotos.config import (
    MissingConfigurationError,
    database_uri,
    get_binlookup_config,
    get_github_config,
    get_onebot_config,
    get_telegram_config,
    get_voting_config,
)
from binphotos.domain.cards import format_card_summary
from binphotos.domain.events import BinQueryEvent
from binphotos.domain.ingest import SubmissionIngest
from binphotos.domain.publisher import OutcomePublisher
from binphotos.domain.query import BinQueryService
from binphotos.domain.voting import (
    DecisionGate,
    GroupChatVoting,
    KeyedLocks,
    PollVoting,
    ReconciliationEngine,
    SingleLinkApproval,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.onebot.translator import OneBotEvent
    from binphotos.config import (
        BinLookupConfig,
        GitHubConfig,
        OneBotConfig,
        TelegramConfig,
        VotingConfig,
    )
    from binphotos.domain.model import SubmissionRef
    from binphotos.domain.ports.storage import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class Services:
    """Everything the long-running process needs, built from configuration."""

    engine: ReconciliationEngine
    ingest: SubmissionIngest
    voting: VotingConfig
    query: BinQueryService | None = None
    onebot: OneBotClient | None = None
    telegram: TelegramUpdatePoller | None = None

    async def handle_chat_event(self, event: OneBotEvent) -> None:
        if isinstance(event, BinQueryEvent):
            if self.query is not None:
                await self.query.handle(event)
            return
        await self.engine.handle(event)

    async def ingest_forever(self) -> None:
        while True:
            await self.ingest_once()
            await asyncio.sleep(self.voting.ingest_interval_seconds)

    async def sweep_forever(self) -> None:
        while True:
            await self.sweep_once()
            await asyncio.sleep(self.voting.sweep_interval_seconds)

    async def ingest_once(self) -> None:
        try:
            await self.ingest.tick()
        except Exception:
            log.exception("Ingest tick failed; retrying next tick")

    async def sweep_once(self) -> None:
        try:
            await self.engine.sweep()
        except Exception:
            log.exception("Vote sweep failed; retrying next tick")

    async def run(self) -> None:
        loops = [self.ingest_forever()]
        if self.engine.group_chat is not None and self.engine.group_chat.enabled:
            loops.append(self.sweep_forever())
        if self.telegram is not None:
            loops.append(self.telegram.run())
        if self.onebot is not None:
            loops.append(self.onebot.run(self.handle_chat_event))
        log.info("Starting %d loop(s)", len(loops))
        await asyncio.gather(*loops)


def _optional[T](loader: Callable[[], T], name: str) -> T | None:
    try:
        return loader()
    except MissingConfigurationError as exc:
        log.info("%s disabled: %s", name, exc)
        return None


def build_services(
    *,
    github: GitHubConfig | None = None,
    telegram: TelegramConfig | None = None,
    onebot: OneBotConfig | None = None,
    binlookup: BinLookupConfig | None = None,
    voting: VotingConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Services:
    """Wire adapters and strategies; Telegram and OneBot are optional."""

    github_config = github or get_github_config()
    telegram_config = telegram or _optional(get_telegram_config, "Telegram")
    onebot_config = onebot or _optional(get_onebot_config, "OneBot")
    lookup_config = binlookup or get_binlookup_config()
    voting_config = voting or get_voting_config()
    uow_factory = unit_of_work_factory or SqlAlchemyUnitOfWork

    def issue_url(ref: SubmissionRef) -> str:
        return github_config.issue_url(ref.number)

    tracker = GitHubIssueTracker(config=github_config)
    lookup = BinLookupClient(config=lookup_config)
    onebot_client = OneBotClient(config=onebot_config) if onebot_config else None
    admin_groups = onebot_config.admin_group_ids if onebot_config else ()

    publisher = OutcomePublisher(
        unit_of_work_factory=uow_factory,
        tracker=tracker,
        notifier=onebot_client,
        admin_channels=admin_groups,
        cards=lookup,
        images=lookup,
        preview_limit=voting_config.preview_image_limit,
    )
    gate = DecisionGate(unit_of_work_factory=uow_factory, publisher=publisher)
    locks: KeyedLocks[SubmissionRef] = KeyedLocks()

    group_chat = None
    if onebot_client is not None:
        group_chat = GroupChatVoting(
            chat=onebot_client,
            channel_ids=admin_groups,
            gate=gate,
            locks=locks,
            config=voting_config,
            issue_url=issue_url,
            images=lookup,
        )

    bot = None
    polls = None
    single_link = None
    poller = None
    if telegram_config is not None:
        bot = TelegramBot(config=telegram_config)
        polls = PollVoting(
            bot=bot,
            channel_ids=telegram_config.chat_ids,
            unit_of_work_factory=uow_factory,
            gate=gate,
            locks=locks,
            max_urls=voting_config.max_poll_urls,
        )
        single_link = SingleLinkApproval(
            bot=bot,
            channel_id=telegram_config.primary_chat_id,
            unit_of_work_factory=uow_factory,
            gate=gate,
            locks=locks,
            issue_url=issue_url,
            operator_id=telegram_config.operator_id,
        )

    engine = ReconciliationEngine(group_chat=group_chat, polls=polls, single_link=single_link)
    if bot is not None:
        poller = TelegramUpdatePoller(
            bot=bot,
            handler=engine.handle,
            interval_seconds=voting_config.update_poll_interval_seconds,
        )

    query = None
    if onebot_client is not None:
        query = BinQueryService(
            cards=lookup,
            replies=onebot_client,
            unit_of_work_factory=uow_factory,
            images=lookup,
            report_url=github_config.report_url(),
            image_limit=voting_config.prompt_image_limit,
        )

    return Services(
        engine=engine,
        ingest=SubmissionIngest(tracker=tracker, unit_of_work_factory=uow_factory, engine=engine),
        voting=voting_config,
        query=query,
        onebot=onebot_client,
        telegram=poller,
    )


def run_service(*, database_path: str | None = None) -> None:
    """Start storage and run every configured loop until interrupted."""

    startup(database_uri=database_uri(database_path))
    services = build_services()
    log.info(
        "binphotos starting: group_chat=%s, polls=%s, single_link=%s",
        services.engine.group_chat is not None,
        services.engine.polls is not None,
        services.engine.single_link is not None,
    )
    asyncio.run(services.run())


def check_bin(bin_: str, *, config: BinLookupConfig | None = None) -> str:
    """Look up card metadata for one BIN and render it."""

    client = BinLookupClient(config=config or get_binlookup_config())
    metadata = asyncio.run(client.fetch_metadata(bin_))
    return format_card_summary(metadata, bin_)
