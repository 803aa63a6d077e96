"""Base client with common functionality"""

import asyncio
import json
from typing import Dict, Any, Optional, Sequence, Tuple, Union
import aiohttp
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from loguru import logger

from ..exceptions import UpstreamHTTPError
from ..utils import truncate

QueryParams = Union[Dict[str, str], Sequence[Tuple[str, str]]]

# Transport failures worth another attempt; HTTP error statuses are not retried
RETRYABLE_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class BaseAPIClient:
    """Base class for JSON API clients with retry logic and typed HTTP errors"""

    provider_name = "Upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        max_retries: int = 3,
        retry_wait_min: float = 0.5,
        retry_wait_max: float = 5,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_wait_min = retry_wait_min
        self.retry_wait_max = retry_wait_max

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make HTTP request with retry logic on transport failures"""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_wait_min, min=self.retry_wait_min, max=self.retry_wait_max),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"{self.provider_name} request retry "
                        f"{attempt.retry_state.attempt_number}/{self.max_retries}"
                    )
                return await self._send(method, url, params=params, headers=headers)

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[QueryParams] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        default_headers = {"Accept": "application/json"}
        if headers:
            default_headers.update(headers)

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.request(method, url, params=params, headers=default_headers) as response:
                if response.status < 200 or response.status >= 300:
                    text = await self._read_text(response)
                    raise self._http_error(response.status, response.reason or "", text)
                return await response.json(content_type=None)

    @staticmethod
    async def _read_text(response: aiohttp.ClientResponse) -> str:
        try:
            return await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read error body: {e}")
            return ""

    def _http_error(self, status: int, reason: str, text: str) -> UpstreamHTTPError:
        """Build a typed error from a non-2xx response, preferring the JSON message/error field"""
        body = text
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            for key in ("message", "error"):
                if isinstance(parsed.get(key), str):
                    body = parsed[key]
                    break

        message = f"{self.provider_name} request failed: {status} {reason}".rstrip()
        if body:
            message = f"{message} ({truncate(body, 200)})"
        return UpstreamHTTPError(status, message, body)
