"""Async client for the upstream catalog API.

Every attempt goes through a SerialRequestQueue, so one client never has
more than one request in flight. Failures are retried with exponential
backoff; a 429 trips the CircuitBreaker and fails immediately, and while
the breaker is open calls fail fast without any network I/O.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from urllib.parse import quote
from typing import Any, Awaitable, Callable, Mapping

import aiohttp
import orjson
from typing_extensions import Self

from tunevault.config.models.upstream_settings import UpstreamSettings
from tunevault.services.circuit_breaker import CircuitBreaker
from tunevault.services.request_queue import SerialRequestQueue
from tunevault.services.upstream.models import UpstreamPayload, parse_envelope
from tunevault.shared.constants import (
    ContentTypes,
    HTTPHeaders,
    HTTPStatusCodes,
    UpstreamDefaults,
    UpstreamEndpoints,
)
from tunevault.shared.errors import (
    CircuitOpenError,
    ErrorCode,
    ErrorContext,
    RateLimitedError,
    UpstreamError,
    UpstreamTimeoutError,
    create_parse_error,
)
from tunevault.shared.logging import log_api_call, log_operation_error

logger = logging.getLogger(__name__)

RawResponse = tuple[int, Any, Mapping[str, str]]


def _parse_retry_after(headers: Mapping[str, str]) -> float | None:
    value = headers.get(HTTPHeaders.RETRY_AFTER)
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class UpstreamClient:
    """Rate-limit aware client for the catalog API.

    Args:
        settings: Upstream configuration (defaults to UpstreamSettings())
        session: Optional aiohttp session; created lazily and owned otherwise
        clock: Monotonic time source shared with the breaker and queue
        sleep: Coroutine used for backoff sleeps, injectable for tests
        rng: Random source for backoff jitter
    """

    def __init__(
        self,
        settings: UpstreamSettings | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or UpstreamSettings()
        self.breaker = CircuitBreaker(cooldown=self.settings.circuit_cooldown, clock=clock)
        self.queue = SerialRequestQueue(min_interval=self.settings.min_request_interval, clock=clock)

        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        self._rng = rng or random.Random()

        self._request_count = 0
        self._success_count = 0
        self._retry_count = 0
        self._failure_count = 0
        self._rate_limited_count = 0
        self._rejected_count = 0

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def backoff_delay(self, attempt: int) -> float:
        """Sleep before retrying after the failed attempt number ``attempt`` (0-based).

        ``2**attempt * retry_delay`` plus uniform jitter, capped at
        ``max_retry_delay``.
        """
        base = (2**attempt) * self.settings.retry_delay
        jitter = self._rng.uniform(0, self.settings.retry_jitter) if self.settings.retry_jitter else 0.0
        return min(base + jitter, self.settings.max_retry_delay)

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> UpstreamPayload:
        """GET ``path`` and return the parsed payload.

        Raises:
            CircuitOpenError: The breaker is open; no request was made
            RateLimitedError: The upstream answered 429 and the breaker tripped
            UpstreamTimeoutError: Every attempt failed and the last one timed out
            UpstreamError: Every attempt failed for another reason
            ParseError: The 2xx body could not be parsed
        """
        url = f"{self.settings.base_url}{path}"
        query = {key: str(value) for key, value in (params or {}).items() if value is not None}
        context = ErrorContext(operation="upstream_get", additional_data={"path": path})

        last_error: UpstreamError | None = None
        for attempt in range(self.settings.retry_attempts):
            self._raise_if_open(context)

            started = time.perf_counter()
            try:
                status, body, headers = await self.queue.submit(lambda: self._dispatch(url, query, context))
            except asyncio.TimeoutError as e:
                last_error = UpstreamTimeoutError(
                    f"Request to {path} timed out after {self.settings.timeout}s",
                    context=context,
                    original_error=e,
                )
            except aiohttp.ClientError as e:
                last_error = UpstreamError(
                    ErrorCode.UPSTREAM_CONNECTION_ERROR,
                    f"Request to {path} failed: {e}",
                    context=context,
                    original_error=e,
                )
            else:
                duration_ms = (time.perf_counter() - started) * 1000
                log_api_call(logger, path, status_code=status, duration_ms=duration_ms)

                if HTTPStatusCodes.is_rate_limited(status):
                    raise self._handle_rate_limit(headers, context)

                if HTTPStatusCodes.is_success(status):
                    self._success_count += 1
                    return parse_envelope(body)

                code = (
                    ErrorCode.UPSTREAM_SERVER_ERROR
                    if HTTPStatusCodes.is_server_error(status)
                    else ErrorCode.UPSTREAM_REQUEST_FAILED
                )
                last_error = UpstreamError(
                    code,
                    f"Request to {path} returned HTTP {status}",
                    context=context,
                    status_code=status,
                )

            if attempt + 1 < self.settings.retry_attempts:
                delay = self.backoff_delay(attempt)
                self._retry_count += 1
                logger.warning(
                    "Upstream attempt %d/%d for %s failed (%s), retrying in %.2fs",
                    attempt + 1,
                    self.settings.retry_attempts,
                    path,
                    last_error.code.value,
                    delay,
                )
                await self._sleep(delay)

        assert last_error is not None
        self._failure_count += 1
        log_operation_error(logger, last_error, additional_context={"attempts": self.settings.retry_attempts})
        raise last_error

    def _raise_if_open(self, context: ErrorContext) -> None:
        if self.breaker.is_open():
            self._rejected_count += 1
            raise CircuitOpenError(
                "Upstream circuit is open, failing fast",
                retry_after=self.breaker.retry_after(),
                context=context,
            )

    def _handle_rate_limit(self, headers: Mapping[str, str], context: ErrorContext) -> RateLimitedError:
        self._rate_limited_count += 1
        self.breaker.trip(_parse_retry_after(headers))
        error = RateLimitedError(
            "Upstream rate limit reached (HTTP 429)",
            retry_after=self.breaker.retry_after(),
            context=context,
        )
        log_operation_error(logger, error, level=logging.WARNING)
        return error

    async def _dispatch(self, url: str, params: Mapping[str, str], context: ErrorContext) -> RawResponse:
        # Attempts queued before a trip must not reach the network
        self._raise_if_open(context)
        self._request_count += 1
        return await self._perform_request(url, params)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    HTTPHeaders.USER_AGENT: self.settings.user_agent,
                    HTTPHeaders.ACCEPT: ContentTypes.JSON,
                },
            )
            self._owns_session = True
        return self._session

    async def _perform_request(self, url: str, params: Mapping[str, str]) -> RawResponse:
        """Issue one GET and return ``(status, decoded_body, headers)``.

        Only 2xx bodies are decoded; other statuses return ``None`` as body.
        """
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout)
        async with session.get(url, params=params, timeout=timeout) as response:
            headers = dict(response.headers)
            if not HTTPStatusCodes.is_success(response.status):
                return response.status, None, headers

            raw = await response.read()
            try:
                body = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                raise create_parse_error(
                    "Upstream returned a body that is not valid JSON",
                    operation="upstream_get",
                    original_error=e,
                    status_code=response.status,
                ) from e
            return response.status, body, headers

    # Endpoint helpers

    async def search(
        self,
        path: str,
        query: str,
        page: int = UpstreamDefaults.SEARCH_PAGE,
        limit: int = UpstreamDefaults.SEARCH_LIMIT,
    ) -> UpstreamPayload:
        """Run a search against one of the search endpoints."""
        if path == UpstreamEndpoints.SEARCH:
            return await self.get(path, {"query": query})
        return await self.get(path, {"query": query, "page": page, "limit": limit})

    async def get_song(self, song_id: str) -> UpstreamPayload:
        return await self.get(UpstreamEndpoints.SONG.format(song_id=quote(song_id, safe="")))

    async def get_songs(self, song_ids: list[str]) -> UpstreamPayload:
        return await self.get(UpstreamEndpoints.SONGS, {"ids": ",".join(song_ids)})

    async def get_song_suggestions(
        self,
        song_id: str,
        limit: int = UpstreamDefaults.SUGGESTION_LIMIT,
    ) -> UpstreamPayload:
        path = UpstreamEndpoints.SONG_SUGGESTIONS.format(song_id=quote(song_id, safe=""))
        return await self.get(path, {"limit": limit})

    async def get_artist(self, artist_id: str) -> UpstreamPayload:
        return await self.get(UpstreamEndpoints.ARTIST.format(artist_id=quote(artist_id, safe="")))

    async def get_artist_songs(self, artist_id: str, page: int = UpstreamDefaults.SEARCH_PAGE) -> UpstreamPayload:
        path = UpstreamEndpoints.ARTIST_SONGS.format(artist_id=quote(artist_id, safe=""))
        return await self.get(path, {"page": page})

    async def get_artist_albums(self, artist_id: str, page: int = UpstreamDefaults.SEARCH_PAGE) -> UpstreamPayload:
        path = UpstreamEndpoints.ARTIST_ALBUMS.format(artist_id=quote(artist_id, safe=""))
        return await self.get(path, {"page": page})

    async def get_album(self, album_id: str) -> UpstreamPayload:
        return await self.get(UpstreamEndpoints.ALBUMS, {"id": album_id})

    async def get_playlist(self, playlist_id: str) -> UpstreamPayload:
        return await self.get(UpstreamEndpoints.PLAYLISTS, {"id": playlist_id})

    def get_stats(self) -> dict[str, Any]:
        """Get client statistics.

        Returns:
            Dictionary with request counters, breaker state and queue depth
        """
        return {
            "requests": self._request_count,
            "successes": self._success_count,
            "retries": self._retry_count,
            "failures": self._failure_count,
            "rate_limited": self._rate_limited_count,
            "rejected": self._rejected_count,
            "circuit": self.breaker.get_stats(),
            "queue": self.queue.get_stats(),
        }

    async def close(self) -> None:
        """Stop the request queue and close the owned HTTP session."""
        await self.queue.close()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        logger.debug("Upstream client closed")


__all__ = ["UpstreamClient"]
