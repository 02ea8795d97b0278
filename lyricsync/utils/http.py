"""
Shared asynchronous HTTP client

Wraps one lazily created aiohttp ClientSession with the configured timeout
and User-Agent. Every failure is reported as ProviderError:

- no HTTP response at all (connection error, DNS failure, timeout):
  `is_transport_error=True`
- a response outside 2xx: `status` set to the HTTP status
- a 2xx response whose body is not valid text or the expected JSON:
  `status` set
"""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp

from ..config.settings import get_settings
from ..exceptions import ProviderError
from .logger import get_logger

logger = get_logger(__name__)


class AsyncHttpClient:
    """
    Minimal GET client shared by the lyrics and metadata providers

    Usable as an async context manager; otherwise call `close()` when done.
    """

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        settings = get_settings()
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.network.request_timeout)
        self.user_agent = user_agent or settings.network.user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> 'AsyncHttpClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={'User-Agent': self.user_agent}
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_text(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> str:
        """
        GET a URL and return its body as text

        Raises:
            ProviderError: On transport failure, a non-2xx status or a body
                that does not decode as text
        """
        session = self._get_session()
        try:
            async with session.get(url, params=params, headers=headers) as response:
                try:
                    body = await response.text()
                except (UnicodeDecodeError, LookupError) as e:
                    raise ProviderError(
                        f"Undecodable body from {url}: {e}",
                        details={'url': url, 'params': params},
                        status=response.status
                    ) from e
                if not 200 <= response.status < 300:
                    raise ProviderError(
                        f"GET {url} failed: {response.status} {response.reason}",
                        details={'url': url, 'params': params},
                        status=response.status
                    )
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(
                f"GET {url} failed: {e.__class__.__name__}: {e}",
                details={'url': url, 'params': params},
                is_transport_error=True
            ) from e

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        GET a URL and decode its JSON body

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            ProviderError: On transport failure, a non-2xx status or invalid JSON
        """
        body = await self.get_text(url, params=params, headers=headers)
        if not body:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise ProviderError(
                f"Invalid JSON from {url}: {e}",
                details={'url': url},
                status=200
            ) from e
