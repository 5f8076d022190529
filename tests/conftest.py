# tests/conftest.py
from __future__ import annotations

import pytest

from feedsweep.schemas import RawItem, Source
from feedsweep.store import SqliteArticleStore


@pytest.fixture(autouse=True)
def _isolate_db(tmp_path, monkeypatch):
    monkeypatch.setenv("FEEDSWEEP_DB_PATH", str(tmp_path / "test.db"))
    # Zero pacing unless a test asks for it
    monkeypatch.setenv("FEEDSWEEP_PACING_DELAY_S", "0")


@pytest.fixture
def store(tmp_path):
    return SqliteArticleStore(str(tmp_path / "test.db"))


class FakeFetcher:
    """
    Stands in for FeedFetcher: url -> list of RawItems, or an exception to raise.
    Records every url it was asked for.
    """

    def __init__(self, feeds: dict[str, list[RawItem] | Exception] | None = None):
        self.feeds = feeds or {}
        self.calls: list[str] = []

    def fetch(self, url: str) -> list[RawItem]:
        self.calls.append(url)
        result = self.feeds[url]
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


def make_items(prefix: str, n: int) -> list[RawItem]:
    return [
        RawItem(link=f"https://{prefix}.test/{i}", title=f"{prefix} item {i}", content=f"body {i}")
        for i in range(n)
    ]


def make_source(source_id: str, *, feed_url: str | None = None, active: bool = True) -> Source:
    return Source(
        id=source_id,
        name=source_id.upper(),
        feed_url=f"https://{source_id}.test/feed" if feed_url is None else feed_url,
        active=active,
    )
