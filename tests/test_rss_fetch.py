import http.client
import socket
import urllib.error

import pytest

from feedsweep.errors import FetchTimeout, FetchUnreachable, MalformedFeed
from feedsweep.rss_fetch import FeedFetcher, fetch_feed_bytes

# ---------- helpers ----------

# Mimics urllib's HTTP response
class FakeResponse:
    def __init__(self, *, status: int, body: bytes):
        self.status = status
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
  <item><title>A</title><link>https://x.test/a</link><description>d</description></item>
</channel></rss>
"""

# ---------- tests ----------

def test_fetch_feed_bytes_success(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout):
        seen["timeout"] = timeout
        seen["ua"] = req.get_header("User-agent")
        return FakeResponse(status=200, body=b"<rss>ok</rss>")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    out = fetch_feed_bytes("https://example.com/feed.xml", timeout_s=5.0, user_agent="tester/1")
    assert out == b"<rss>ok</rss>"
    assert seen == {"timeout": 5.0, "ua": "tester/1"}


def test_fetch_feed_bytes_non_200_is_unreachable(monkeypatch):
    def fake_urlopen(req, timeout):
        return FakeResponse(status=500, body=b"error")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchUnreachable) as info:
        fetch_feed_bytes("https://example.com/feed.xml")
    assert info.value.status == 500


def test_fetch_feed_bytes_http_error_keeps_status(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 404, "Not Found", hdrs=None, fp=None)

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchUnreachable) as info:
        fetch_feed_bytes("https://example.com/feed.xml")
    assert info.value.status == 404
    assert info.value.code == "FETCH_UNREACHABLE"


def test_fetch_feed_bytes_dns_failure_is_unreachable(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.URLError(socket.gaierror(-2, "Name or service not known"))

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchUnreachable):
        fetch_feed_bytes("https://nowhere.invalid/feed")


def test_fetch_feed_bytes_read_timeout(monkeypatch):
    def fake_urlopen(req, timeout):
        raise TimeoutError("timed out")

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchTimeout) as info:
        fetch_feed_bytes("https://example.com/feed.xml", timeout_s=0.1)
    assert info.value.code == "FETCH_TIMEOUT"


def test_fetch_feed_bytes_connect_timeout_wrapped_in_urlerror(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.URLError(socket.timeout("timed out"))

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with pytest.raises(FetchTimeout):
        fetch_feed_bytes("https://example.com/feed.xml")


def test_fetch_feed_bytes_bad_url_is_unreachable():
    with pytest.raises(FetchUnreachable):
        fetch_feed_bytes("not a url")


def test_feed_fetcher_parses_items(monkeypatch):
    monkeypatch.setattr("urllib.request.urlopen", lambda req, timeout: FakeResponse(status=200, body=FEED))

    items = FeedFetcher(timeout_s=3.0).fetch("https://x.test/feed")
    assert len(items) == 1
    assert items[0].link == "https://x.test/a"
    assert items[0].title == "A"


def test_feed_fetcher_malformed_body(monkeypatch):
    monkeypatch.setattr("urllib.request.urlopen", lambda req, timeout: FakeResponse(status=200, body=b"<rss><oops>"))

    with pytest.raises(MalformedFeed):
        FeedFetcher().fetch("https://x.test/feed")


def test_feed_fetcher_uses_default_timeout(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout):
        seen["timeout"] = timeout
        return FakeResponse(status=200, body=FEED)

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    FeedFetcher().fetch("https://x.test/feed")
    assert seen["timeout"] == 30.0


def test_fetch_feed_bytes_truncated_body_is_unreachable(monkeypatch):
    class TruncatedResponse(FakeResponse):
        def read(self) -> bytes:
            raise http.client.IncompleteRead(b"<rss><chan", 4096)

    monkeypatch.setattr("urllib.request.urlopen", lambda req, timeout: TruncatedResponse(status=200, body=b""))

    with pytest.raises(FetchUnreachable):
        fetch_feed_bytes("https://x.test/feed")


def test_feed_fetcher_unsupported_encoding_is_malformed(monkeypatch):
    body = b'<?xml version="1.0" encoding="gb2312"?><rss version="2.0"><channel></channel></rss>'
    monkeypatch.setattr("urllib.request.urlopen", lambda req, timeout: FakeResponse(status=200, body=body))

    with pytest.raises(MalformedFeed):
        FeedFetcher().fetch("https://x.test/feed")
