"""Per-role request budgets backed by an external rate limit service or an in-process window."""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import httpx

from app.models.user import Role

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int | None = None


class RateLimitServiceError(Exception):
    """Raised when the rate limit service cannot return a decision."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class RateLimiter(Protocol):
    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        """Count one request against key and decide whether it is admitted."""
        ...


def budget_for(role: Role, settings: Settings) -> int:
    """Requests per window allowed for role."""
    budgets = {
        Role.ADMIN: settings.RATE_LIMIT_ADMIN,
        Role.USER: settings.RATE_LIMIT_USER,
        Role.GUEST: settings.RATE_LIMIT_GUEST,
    }
    return budgets[role]


def rate_limit_key(role: Role, user_id: int | None, client_ip: str | None) -> str:
    """Authenticated callers are keyed by user id, everyone else by client IP."""
    if user_id is not None:
        return f"{role.value}:user:{user_id}"
    return f"{role.value}:ip:{client_ip or 'unknown'}"


class InMemoryRateLimiter:
    """
    Sliding window limiter held in process memory.

    Only suitable for a single process (development and tests); counts are
    lost on restart and not shared between workers.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def _sweep(self, window_start: float) -> None:
        """Drop every key whose window has emptied."""
        for key in [k for k, hits in self._hits.items() if hits[-1] <= window_start]:
            del self._hits[key]

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        now = self._clock()
        window_start = now - window_seconds
        if now - self._last_sweep >= window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= limit:
            retry_after = int(hits[0] + window_seconds - now) + 1
            return RateLimitDecision(
                allowed=False, limit=limit, remaining=0, retry_after=retry_after
            )

        hits.append(now)
        return RateLimitDecision(allowed=True, limit=limit, remaining=limit - len(hits))


class RemoteRateLimiter:
    """
    Client for the external rate limit service.

    POST {base_url}/v1/decide with {"key", "limit", "window_seconds"} and a
    bearer API key; the service answers {"allowed", "remaining", "retry_after"}.
    Any transport error, non-200 status or unexpected body raises
    RateLimitServiceError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = f"{base_url.rstrip('/')}/v1/decide"
        self.api_key = api_key
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        payload = {"key": key, "limit": limit, "window_seconds": window_seconds}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise RateLimitServiceError("Rate limit service timed out.", cause=e) from e
        except httpx.HTTPError as e:
            raise RateLimitServiceError("Rate limit service is unreachable.", cause=e) from e
        elapsed = time.perf_counter() - start

        if response.status_code != 200:
            raise RateLimitServiceError(
                f"Rate limit service returned status {response.status_code}."
            )
        try:
            body = response.json()
            allowed = body["allowed"]
            remaining = int(body.get("remaining") or 0)
            retry_after = body.get("retry_after")
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise RateLimitServiceError("Rate limit service response is invalid.", cause=e) from e
        if not isinstance(allowed, bool):
            raise RateLimitServiceError("Rate limit service response is invalid.")

        logger.debug(
            "Rate limit decision",
            extra={"rate_limit_key": key, "allowed": allowed, "latency_seconds": elapsed},
        )
        return RateLimitDecision(
            allowed=allowed,
            limit=limit,
            remaining=max(remaining, 0),
            retry_after=int(retry_after) if retry_after is not None else None,
        )


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Construct the limiter selected by RATE_LIMIT_BACKEND."""
    if settings.RATE_LIMIT_BACKEND == "memory":
        logger.info("Using in-memory rate limiter (single process only)")
        return InMemoryRateLimiter()
    if not settings.RATE_LIMIT_SERVICE_URL or settings.RATE_LIMIT_API_KEY is None:
        raise ValueError(
            "RATE_LIMIT_SERVICE_URL and RATE_LIMIT_API_KEY are required when RATE_LIMIT_BACKEND=remote"
        )
    return RemoteRateLimiter(
        base_url=settings.RATE_LIMIT_SERVICE_URL,
        api_key=settings.RATE_LIMIT_API_KEY.get_secret_value(),
        timeout=settings.RATE_LIMIT_REQUEST_TIMEOUT_SEC,
    )


async def check_rate_limit(
    limiter: RateLimiter,
    settings: Settings,
    role: Role,
    key: str,
) -> RateLimitDecision:
    """
    Ask the limiter for a decision on one request.

    When the limiter fails, RATE_LIMIT_FAIL_MODE decides: "open" admits the
    request, "closed" re-raises RateLimitServiceError.
    """
    limit = budget_for(role, settings)
    try:
        return await limiter.hit(key, limit, settings.RATE_LIMIT_WINDOW_SECONDS)
    except RateLimitServiceError as e:
        if settings.RATE_LIMIT_FAIL_MODE == "open":
            logger.warning(
                "Rate limit service failed; admitting request (fail-open)",
                extra={"rate_limit_key": key, "reason": e.message},
            )
            return RateLimitDecision(allowed=True, limit=limit, remaining=limit)
        logger.error(
            "Rate limit service failed; rejecting request (fail-closed)",
            extra={"rate_limit_key": key, "reason": e.message},
        )
        raise
