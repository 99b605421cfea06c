"""
CAD feed client: one bounded-time GET of the upstream Socrata dispatch resource.

Any transport problem (timeout, network error, non-2xx, bad JSON, non-list body)
is raised as FeedError; the engine turns that into an ERROR status flag.
"""

import logging
from typing import Optional

import httpx

from core.config import DEFAULT_FEED_LIMIT, DEFAULT_FEED_URL, DEFAULT_FETCH_TIMEOUT

logger = logging.getLogger("dispatch_watch.feed")


class FeedError(RuntimeError):
    """Upstream feed could not be fetched or decoded."""


class CADFeedClient:
    """Fetches raw records ordered by call time, newest first."""

    def __init__(
        self,
        url: str = DEFAULT_FEED_URL,
        limit: int = DEFAULT_FEED_LIMIT,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.limit = limit
        self.timeout = timeout
        self._transport = transport

    def query_params(self) -> dict:
        return {"$order": "call_time DESC", "$limit": str(self.limit)}

    async def fetch(self) -> list[dict]:
        logger.info("fetching feed url=%s limit=%d", self.url, self.limit)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(
                    self.url,
                    params=self.query_params(),
                    headers={"Accept": "application/json"},
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise FeedError(f"feed returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedError(f"feed request failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise FeedError(f"feed returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise FeedError(f"feed returned {type(data).__name__}, expected list")
        if not data:
            logger.warning("feed returned no records")
        logger.info("feed received records=%d", len(data))
        return data
