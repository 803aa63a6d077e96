"""Media relay: fetch guard-approved media with time and size bounds"""

import asyncio
from dataclasses import dataclass
from typing import Optional
import aiohttp
from loguru import logger
from yarl import URL

from .config import Config, config as default_config
from .exceptions import PayloadTooLargeError, RelayUpstreamError, RelayTimeoutError
from .security import GuardedResolver, RelayGuard

ACCEPT_MEDIA = "image/*,video/*,*/*;q=0.8"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
CHUNK_SIZE = 64 * 1024
REDIRECT_STATUSES = {301, 302, 303, 307, 308}

# Headers attached to every relayed body
RELAY_RESPONSE_HEADERS = {
    "Cache-Control": "public, max-age=86400, s-maxage=86400, stale-while-revalidate=604800",
    "X-Content-Type-Options": "nosniff",
    "Access-Control-Allow-Origin": "*",
}


@dataclass
class RelayedMedia:
    content_type: str
    body: bytes


class MediaRelay:
    """
    Fetch one media URL on the client's behalf

    The URL and every redirect target go through the relay guard; the
    connector refuses private addresses at connect time. No retries: the
    caller moves on to the card's next fallback URL.
    """

    def __init__(
        self,
        guard: Optional[RelayGuard] = None,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        max_redirects: Optional[int] = None,
        config_instance: Optional[Config] = None,
    ):
        cfg = config_instance or default_config
        self.guard = guard or RelayGuard()
        self.timeout = timeout if timeout is not None else cfg.media_timeout
        self.max_bytes = max_bytes if max_bytes is not None else cfg.media_max_bytes
        self.max_redirects = max_redirects if max_redirects is not None else cfg.media_max_redirects

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            connector=aiohttp.TCPConnector(resolver=GuardedResolver()),
        )

    async def fetch(self, raw_url: str) -> RelayedMedia:
        """
        Raises:
            RelayBlockedError: the URL or a redirect target failed the guard
            PayloadTooLargeError: declared or received size above the cap
            RelayUpstreamError: non-2xx status or transport failure
            RelayTimeoutError: the upstream did not answer in time
        """
        url = await self.guard.check(raw_url)
        try:
            async with self._session() as session:
                for hop in range(self.max_redirects + 1):
                    async with session.get(url, headers={"Accept": ACCEPT_MEDIA}, allow_redirects=False) as response:
                        if response.status in REDIRECT_STATUSES:
                            location = response.headers.get("Location")
                            if not location or hop == self.max_redirects:
                                raise RelayUpstreamError(upstream_status=response.status)
                            url = await self.guard.check(str(url.join(URL(location))))
                            continue

                        if response.status < 200 or response.status >= 300:
                            logger.info(f"Relay upstream {url.host} returned {response.status}")
                            raise RelayUpstreamError(upstream_status=response.status)

                        return await self._read(response)
                raise RelayUpstreamError("Upstream fetch failed.")
        except asyncio.TimeoutError:
            logger.info(f"Relay upstream {url.host} timed out after {self.timeout}s")
            raise RelayTimeoutError()
        except (aiohttp.ClientError, ValueError) as e:
            logger.info(f"Relay fetch from {url.host} failed: {type(e).__name__}")
            raise RelayUpstreamError("Upstream fetch failed.")

    async def _read(self, response: aiohttp.ClientResponse) -> RelayedMedia:
        """Buffer the body, refusing anything over the cap whatever the headers claim"""
        declared = response.content_length
        if declared is not None and declared > self.max_bytes:
            logger.info(f"Relay refused {declared} declared bytes from {response.url.host}")
            raise PayloadTooLargeError()

        chunks = []
        received = 0
        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
            received += len(chunk)
            if received > self.max_bytes:
                logger.info(f"Relay aborted {response.url.host} after {received} bytes")
                raise PayloadTooLargeError()
            chunks.append(chunk)

        content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        return RelayedMedia(content_type=content_type, body=b"".join(chunks))
