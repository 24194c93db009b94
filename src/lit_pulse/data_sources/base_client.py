"""
Base client for all upstream literature sources.

Provides: a pooled aiohttp session, a minimum inter-request delay, retry
with exponential backoff, per-request timeouts and structured logging.
Every upstream call in the project goes through ``BaseClient._request``.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Literal

import aiohttp
from pydantic import BaseModel, ConfigDict

from lit_pulse.config import Settings
from lit_pulse.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MIN_REQUEST_INTERVAL,
    DEFAULT_TIMEOUT,
)
from lit_pulse.models.model_query import DateWindow, QueryDescriptor
from lit_pulse.models.model_raw_record import RawRecord

logger = logging.getLogger("lit_pulse.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Backoff policy for failed requests.

    Attempt ``n`` (0-based) that fails waits ``base_delay * backoff_factor**n``
    seconds, capped at ``max_delay``, before the next attempt.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BACKOFF_BASE  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.backoff_factor**attempt), self.max_delay)

    def is_retryable(self, status: int) -> bool:
        return status in self.retryable_status_codes


class RateLimitConfig(BaseModel):
    """Minimum spacing between consecutive requests of one client."""

    min_interval_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL


class ClientConfig(BaseModel):
    """Top-level config aggregating retry, rate limit and timeout."""

    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            retry=RetryConfig(
                max_attempts=settings.max_attempts,
                base_delay=settings.backoff_base_seconds,
            ),
            rate_limit=RateLimitConfig(
                min_interval_seconds=settings.min_request_interval_seconds
            ),
            timeout_seconds=settings.request_timeout_seconds,
        )


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------


class MinIntervalRateLimiter:
    """
    Async limiter enforcing a minimum delay between requests.

    Callers await ``acquire()`` before each request. Concurrent callers are
    serialized by a lock, so requests leave at most once per interval even
    when several queries run at the same time.
    """

    def __init__(self, config: RateLimitConfig):
        self.interval = config.min_interval_seconds
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            if self._last_request is not None:
                wait = self.interval - (now - self._last_request)
                if wait > 0:
                    logger.debug("Throttling %.2fs before next request", wait)
                    await asyncio.sleep(wait)
            self._last_request = time.monotonic()


# ---------------------------------------------------------------------------
# Per-request log context
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Source, method and query label carried into log lines and errors."""

    source: str  # e.g. "pubmed", "scholar"
    method: str  # e.g. "search", "fetch_details"
    query: str | None = None  # query label, when the request serves one


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FetchError(Exception):
    """A request (or a whole query) that could not be completed."""

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int | None = None,
        query: str | None = None,
    ):
        self.source = source
        self.status_code = status_code
        self.query = query
        self.reason = message
        prefix = f"[{source}:{query}]" if query else f"[{source}]"
        super().__init__(f"{prefix} {message}")


# ---------------------------------------------------------------------------
# Per-query result wrapper
# ---------------------------------------------------------------------------


class QueryResult(BaseModel):
    """
    Records gathered for one query, possibly incomplete.

    A query that hit errors may still carry the records of the requests
    that did succeed (e.g. every detail batch but one).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    query: QueryDescriptor
    records: list[RawRecord] = []
    errors: list[FetchError] = []
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for the PubMed and Google Scholar clients.

    Subclasses implement ``_source_name`` and their own typed methods that
    call ``_rest_get()`` (JSON) or ``_rest_get_text()`` (XML / HTML).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        max_attempts: int | None = None,
    ):
        self.config = config or ClientConfig()
        if max_attempts is not None:
            retry = self.config.retry.model_copy(update={"max_attempts": max_attempts})
            self.config = self.config.model_copy(update={"retry": retry})
        self.rate_limiter = MinIntervalRateLimiter(self.config.rate_limit)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'pubmed'."""
        ...

    @abstractmethod
    async def fetch_query(
        self, query: QueryDescriptor, window: DateWindow
    ) -> QueryResult:
        """Run one query end to end. Failures are reported, not raised."""
        ...

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Core request with retry + rate limiting -----------------------------

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        expect: Literal["json", "text"] = "json",
        context: RequestContext | None = None,
    ) -> Any:
        """
        Make a GET request with rate limiting, timeout and retry.

        Parameters
        ----------
        url : str
            Full URL.
        params : dict, optional
            Query string parameters.
        headers : dict, optional
            Additional HTTP headers.
        expect : {"json", "text"}
            How to decode a successful body.
        context : RequestContext, optional
            Logging context.

        Raises
        ------
        FetchError
            On a non-retryable HTTP error, an undecodable body, or once all
            attempts are exhausted.
        """
        ctx = context or RequestContext(source=self._source_name, method="unknown")
        retry = self.config.retry
        last_error = FetchError(ctx.source, "No attempt was made", query=ctx.query)
        start = time.monotonic()

        for attempt in range(retry.max_attempts):
            is_last = attempt == retry.max_attempts - 1
            delay = retry.delay_for(attempt)
            try:
                await self.rate_limiter.acquire()
                session = await self._get_session()

                logger.info(
                    "%s.%s attempt %d GET %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    url,
                )

                resp = await session.get(url, params=params, headers=headers)

                # Status handling
                if retry.is_retryable(resp.status):
                    body = await resp.text()
                    logger.warning(
                        "%s.%s got retryable HTTP %d: %s",
                        ctx.source,
                        ctx.method,
                        resp.status,
                        body[:200],
                    )
                    last_error = FetchError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:200]}",
                        status_code=resp.status,
                        query=ctx.query,
                    )
                    if resp.status == 429:
                        # Retry-After overrides the computed backoff
                        retry_after = resp.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)

                elif resp.status >= 400:
                    body = await resp.text()
                    raise FetchError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:500]}",
                        status_code=resp.status,
                        query=ctx.query,
                    )

                else:
                    # --- Success ---
                    if expect == "json":
                        try:
                            data = await resp.json(content_type=None)
                        except ValueError as e:
                            raise FetchError(
                                ctx.source,
                                f"Invalid JSON body: {e}",
                                status_code=resp.status,
                                query=ctx.query,
                            ) from e
                    else:
                        data = await resp.text()

                    logger.info(
                        "Success [%s.%s] elapsed=%.2fs",
                        ctx.source,
                        ctx.method,
                        time.monotonic() - start,
                    )
                    return data

            except asyncio.TimeoutError:
                elapsed = time.monotonic() - start
                last_error = FetchError(
                    ctx.source, f"Timeout after {elapsed:.1f}s", query=ctx.query
                )
                logger.warning(
                    "%s.%s timed out on attempt %d after %.1fs",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    elapsed,
                )

            except aiohttp.ClientError as e:
                last_error = FetchError(
                    ctx.source, f"Connection error: {e}", query=ctx.query
                )
                logger.warning(
                    "%s.%s connection failed on attempt %d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

            # base * factor^attempt, capped
            if not is_last:
                await asyncio.sleep(delay)

        logger.error(
            "%s.%s gave up after %.1fs: %s",
            ctx.source,
            ctx.method,
            time.monotonic() - start,
            last_error,
        )
        raise last_error

    # -- Helpers for subclasses ----------------------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        """GET returning the decoded JSON body."""
        return await self._request(
            url, params=params, headers=headers, expect="json", context=context
        )

    async def _rest_get_text(
        self,
        url: str,
        params: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> str:
        """GET returning the raw body text (PubMed XML, Scholar HTML)."""
        return await self._request(
            url, params=params, headers=headers, expect="text", context=context
        )
