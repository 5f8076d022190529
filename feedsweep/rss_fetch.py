from __future__ import annotations

# Import urllib modules for making HTTP requests
import http.client
import urllib.request
import urllib.error

from feedsweep.config import DEFAULT_USER_AGENT
from feedsweep.errors import FetchTimeout, FetchUnreachable
from feedsweep.rss_parse import parse_feed
from feedsweep.schemas import RawItem


DEFAULT_TIMEOUT_S = 30.0


# Fetch raw feed bytes from a URL. No retries: retry policy belongs to whoever schedules sweeps.
def fetch_feed_bytes(url: str, *, timeout_s: float = DEFAULT_TIMEOUT_S, user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    """Fetch a feed document and return the response body as bytes (the XML parser handles the encoding)."""
    try:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": user_agent},
        )

        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            # Some responses (file://, fakes) have no status attribute
            status = getattr(resp, "status", None)
            body = resp.read()

            if status is not None and status != 200:
                raise FetchUnreachable(f"HTTP {status}", status=status)

            return body

    # HTTPError subclasses URLError, so it must come first
    except urllib.error.HTTPError as exc:
        raise FetchUnreachable(f"HTTP {exc.code}", status=exc.code) from exc
    except urllib.error.URLError as exc:
        # Connect timeouts arrive wrapped in URLError
        if isinstance(exc.reason, TimeoutError):
            raise FetchTimeout(f"timeout after {timeout_s}s") from exc
        raise FetchUnreachable(f"URL error: {exc.reason}") from exc
    except TimeoutError as exc:
        raise FetchTimeout(f"timeout after {timeout_s}s") from exc
    except (ConnectionError, ValueError) as exc:
        # ValueError: unknown url type / malformed URL
        raise FetchUnreachable(f"{type(exc).__name__}: {exc}") from exc
    except (http.client.HTTPException, OSError) as exc:
        # Truncated body (IncompleteRead), bad status line, socket errors
        raise FetchUnreachable(f"{type(exc).__name__}: {exc}") from exc


class FeedFetcher:
    """Retrieves a remote feed and parses it into RawItems."""

    def __init__(self, *, timeout_s: float = DEFAULT_TIMEOUT_S, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout_s = timeout_s
        self.user_agent = user_agent

    def fetch(self, url: str) -> list[RawItem]:
        """Raises FetchUnreachable, FetchTimeout or MalformedFeed."""
        body = fetch_feed_bytes(url, timeout_s=self.timeout_s, user_agent=self.user_agent)
        return parse_feed(body)
