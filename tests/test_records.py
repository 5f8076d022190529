import sqlite3
from datetime import datetime, timezone

import pytest

from feedsweep.errors import StoreUnavailable
from feedsweep.normalize import build_article, fingerprint
from feedsweep.records import ARTICLE_SCHEMA_VERSION, UnknownSchemaVersion, article_to_row, run_to_row
from feedsweep.schemas import RawItem, Run, RunType

from conftest import make_source


NOW = datetime(2026, 1, 14, 12, 0, 0, tzinfo=timezone.utc)


def _article():
    item = RawItem(link="https://a.test/1", title="One", content="two words")
    return build_article(make_source("a"), item, fingerprint(item), scraped_at=NOW)


def test_article_row_is_versioned_and_json_encoded():
    article = _article().model_copy(update={"classification": {"topic": "qc"}, "top_entities": [{"name": "IBM"}]})
    row = article_to_row(article)

    assert row["schema_version"] == ARTICLE_SCHEMA_VERSION
    assert row["classification_json"] == '{"topic": "qc"}'
    assert row["top_entities_json"] == '[{"name": "IBM"}]'
    assert row["processed"] == 0
    assert row["scraped_at"].startswith("2026-01-14T12:00:00")


def test_unclassified_article_has_null_classification():
    assert article_to_row(_article())["classification_json"] is None


def test_run_row_keeps_enum_values():
    row = run_to_row(Run(id="r", source_id="a", source_name="A", run_type=RunType.RETRY, started_at=NOW))
    assert row["run_type"] == "retry"
    assert row["status"] == "running"
    assert row["completed_at"] is None


def test_unknown_schema_version_is_refused(store, tmp_path):
    article = _article()
    store.create(article)

    conn = sqlite3.connect(str(tmp_path / "test.db"))
    conn.execute("UPDATE articles SET schema_version = 99;")
    conn.commit()
    conn.close()

    with pytest.raises(StoreUnavailable) as excinfo:
        store.get_article(article.id)
    assert isinstance(excinfo.value.__cause__, UnknownSchemaVersion)
