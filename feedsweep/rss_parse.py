# feedsweep/rss_parse.py
from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import xml.etree.ElementTree as ET

from feedsweep.errors import MalformedFeed
from feedsweep.schemas import RawItem


ATOM_NS = "http://www.w3.org/2005/Atom"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RSS1_NS = "http://purl.org/rss/1.0/"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"


def parse_date(text: str | None) -> datetime | None:
    """RFC 822 (RSS pubDate) or ISO 8601 (Atom, dc:date). Unparseable -> None, naive -> UTC."""
    if not text:
        return None

    parsed = None
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text_of(elem: ET.Element, path: str) -> str | None:
    found = elem.find(path)
    if found is None:
        return None
    text = "".join(found.itertext()).strip()
    return text if text else None


def _atom_link(entry: ET.Element) -> str | None:
    fallback = None
    for link in entry.findall(f"{{{ATOM_NS}}}link"):
        href = (link.get("href") or "").strip()
        if not href:
            continue
        if link.get("rel", "alternate") == "alternate":
            return href
        if fallback is None:
            fallback = href
    return fallback


def _rss_item(it: ET.Element, ns: str = "") -> RawItem | None:
    title = _text_of(it, f"{ns}title")
    link = _text_of(it, f"{ns}link")
    if title is None and link is None:
        return None

    content = _text_of(it, f"{ns}description") or _text_of(it, f"{{{CONTENT_NS}}}encoded") or ""
    published = _text_of(it, f"{ns}pubDate") or _text_of(it, f"{{{DC_NS}}}date")

    return RawItem(
        link=link or "",
        title=title or "",
        content=content,
        published_at=parse_date(published),
    )


def _atom_entry(entry: ET.Element) -> RawItem | None:
    a = f"{{{ATOM_NS}}}"
    title = _text_of(entry, f"{a}title")
    link = _atom_link(entry)
    if title is None and link is None:
        return None

    content = _text_of(entry, f"{a}summary") or _text_of(entry, f"{a}content") or ""
    published = _text_of(entry, f"{a}published") or _text_of(entry, f"{a}updated")

    return RawItem(
        link=link or "",
        title=title or "",
        content=content,
        published_at=parse_date(published),
    )


def parse_feed(xml: str | bytes) -> list[RawItem]:
    """
    Convert an RSS 2.0, RSS 1.0 (RDF) or Atom document into RawItem objects.

    Rules:
    - Items with neither link nor title are skipped
    - content is the description (Atom: summary), else the full content element
    - Missing or unparseable dates leave published_at as None
    - Preserve document order
    - Malformed XML or an unknown root element -> raise MalformedFeed
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as exc:
        raise MalformedFeed(f"malformed XML: {exc}") from exc
    except (ValueError, LookupError) as exc:
        # expat rejects some declared encodings (multi-byte, unknown names)
        raise MalformedFeed(f"undecodable feed: {exc}") from exc

    out: list[RawItem] = []

    if root.tag == "rss":
        candidates = [_rss_item(it) for it in root.findall("./channel/item")]
    elif root.tag == f"{{{RDF_NS}}}RDF":
        candidates = [_rss_item(it, f"{{{RSS1_NS}}}") for it in root.findall(f"{{{RSS1_NS}}}item")]
    elif root.tag == f"{{{ATOM_NS}}}feed":
        candidates = [_atom_entry(e) for e in root.findall(f"{{{ATOM_NS}}}entry")]
    else:
        raise MalformedFeed(f"not a feed document: root element {root.tag!r}")

    for item in candidates:
        if item is not None:
            out.append(item)

    return out
