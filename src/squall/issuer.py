import asyncio
import logging
from typing import Protocol

import aiohttp

from . import __version__
from .errors import TransportError
from .models import RunConfig
from .utils import now

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": f"Squall/{__version__}"}
DRAIN_CHUNK_BYTES = 64 * 1024


class RequestIssuer(Protocol):
    async def issue(self, url: str) -> int:
        """Perform one GET and return elapsed milliseconds."""
        ...

    async def close(self) -> None:
        ...


class HttpIssuer:
    """Issues GETs over a keep-alive connection pool private to one worker."""

    def __init__(
        self,
        request_timeout_s: float = 120.0,
        max_connections: int = 100,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.request_timeout_s = request_timeout_s
        self.max_connections = max_connections
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: RunConfig) -> "HttpIssuer":
        return cls(
            request_timeout_s=config.request_timeout_s,
            max_connections=config.max_connections,
            headers=config.headers,
        )

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections,
                force_close=False,
            )
            timeout = aiohttp.ClientTimeout(total=self.request_timeout_s)
            self._session = aiohttp.ClientSession(
                connector=connector, timeout=timeout, headers=self.headers
            )
            logger.debug(
                f"Opened session (pool={self.max_connections}, timeout={self.request_timeout_s}s)"
            )
        return self._session

    async def issue(self, url: str) -> int:
        session = self._ensure_session()
        start = now()
        try:
            async with session.get(url) as resp:
                # the body is drained so the connection goes back to the pool
                async for _ in resp.content.iter_chunked(DRAIN_CHUNK_BYTES):
                    pass
                status = resp.status
        except aiohttp.ClientError as e:
            logger.warning(f"Connection error for {url}: {e}")
            raise TransportError(url, e) from e
        except asyncio.TimeoutError as e:
            logger.warning(f"Timeout for {url}")
            raise TransportError(url, e) from e
        elapsed_ms = int((now() - start) * 1000)
        logger.debug(f"Fetched {url}: status={status}, {elapsed_ms}ms")
        return elapsed_ms

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpIssuer":
        self._ensure_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
