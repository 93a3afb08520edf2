from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from binphotos.domain.events import BinQueryEvent
from binphotos.domain.ports.messaging import ImageSegment, TextSegment
from binphotos.domain.query import BinQueryService, parse_bin_query
from tests.helpers.fakes import FakeCards, FakeImages, FakeReplies

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork

URL_A = "https://img.example/a.jpg"
URL_B = "https://cdn.example/b.png"
REPORT = "https://github.com/octo/bin-photos/issues/new"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("bin 411111", "411111"),
        ("  BIN   52  ", "52"),
        ("bin", None),
        ("bin 41x111", None),
        ("my bin 411111", None),
    ],
)
def test_parse_bin_query(text: str, expected: str | None) -> None:
    assert parse_bin_query(text) == expected


def _store(uow_factory: Callable[[], SqlAlchemyUnitOfWork], *urls: str) -> None:
    with uow_factory() as uow:
        uow.repositories.bin_photos.set_approved_urls("411111", urls)
        uow.commit()


def _service(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    *,
    cards: FakeCards | None = None,
    images: FakeImages | None = None,
    replies: FakeReplies | None = None,
) -> BinQueryService:
    return BinQueryService(
        cards=cards or FakeCards(),
        replies=replies or FakeReplies(),
        unit_of_work_factory=uow_factory,
        images=images,
        report_url=REPORT,
    )


EVENT = BinQueryEvent(bin="411111", user_id=5, group_id=100)


@pytest.mark.asyncio
async def test_unknown_bin_points_to_the_report_page(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    content = await _service(uow_factory).answer(EVENT)

    assert isinstance(content, str)
    assert content.startswith("BIN: 411111\nBrand: VISA")
    assert content.endswith(f"Report one here:\n{REPORT}")


@pytest.mark.asyncio
async def test_stored_photos_are_attached(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    _store(uow_factory, URL_A, URL_B)
    images = FakeImages(images={URL_A: b"a", URL_B: b"b"})

    content = await _service(uow_factory, images=images).answer(EVENT)

    assert not isinstance(content, str)
    assert isinstance(content[0], TextSegment)
    assert "Country: US" in content[0].text
    assert content[1:] == [ImageSegment(b"a"), ImageSegment(b"b")]


@pytest.mark.asyncio
async def test_failed_downloads_fall_back_to_text(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    _store(uow_factory, URL_A)

    content = await _service(uow_factory, images=FakeImages()).answer(EVENT)

    assert isinstance(content, str)
    assert "Report one here" not in content


@pytest.mark.asyncio
async def test_lookup_failure_is_reported(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    content = await _service(uow_factory, cards=FakeCards(fail=True)).answer(EVENT)

    assert content == "Lookup failed: lookup down"


@pytest.mark.asyncio
async def test_handle_replies_in_place(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    replies = FakeReplies()
    private = BinQueryEvent(bin="411111", user_id=5)

    await _service(uow_factory, replies=replies).handle(private)

    assert len(replies.replies) == 1
    user_id, group_id, _ = replies.replies[0]
    assert (user_id, group_id) == (5, None)
