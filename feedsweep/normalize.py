# feedsweep/normalize.py
"""
Fingerprinting and article construction.
Pure functions: no side effects, no database access.
"""
from __future__ import annotations

import hashlib
from datetime import datetime
from typing import TYPE_CHECKING

from feedsweep.schemas import Article, SourceType

if TYPE_CHECKING:
    from feedsweep.schemas import RawItem, Source


ID_PREFIX_LEN = 8
DEFAULT_LANGUAGE = "en"


def fingerprint(item: RawItem) -> str:
    """
    Dedupe key for a feed item: SHA256 hex digest of link + title.

    - Exact concatenation, no separator, no trimming or case folding
    - Body text is not part of the key: an item whose link and title are
      unchanged is the same item even if its description was edited upstream
    """
    raw = f"{item.link}{item.title}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def article_id(source_id: str, content_hash: str) -> str:
    """
    Deterministic article id: article_<source_id>_<first 8 hex chars of hash>.

    Two unrelated hashes from one source can share a prefix; the store reports
    that as a conflict on the id rather than overwriting.
    """
    return f"article_{source_id}_{content_hash[:ID_PREFIX_LEN]}"


def word_count(text: str) -> int:
    return len(text.split())


def build_article(source: Source, item: RawItem, content_hash: str, *, scraped_at: datetime) -> Article:
    return Article(
        id=article_id(source.id, content_hash),
        source_id=source.id,
        source_name=source.name,
        url=item.link,
        title=item.title,
        content=item.content,
        published_at=item.published_at,
        scraped_at=scraped_at,
        source_type=SourceType.RSS,
        content_hash=content_hash,
        word_count=word_count(item.content),
        language=DEFAULT_LANGUAGE,
        processed=False,
    )
