"""Rate limiting middleware. Runs ahead of routing, so every request counts, including unknown paths and bodies that fail to parse."""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security.utils import get_authorization_scheme_param
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.api.deps import get_rate_limiter, identify_caller
from app.api.errors import error_response
from app.core.config import get_settings
from app.core.errors import ServiceUnavailableError, TooManyRequestsError
from app.services.rate_limit import RateLimitServiceError, check_rate_limit, rate_limit_key

logger = logging.getLogger(__name__)


def _resolve(request: Request, provider: Callable[[], Any]) -> Any:
    # Honour app.dependency_overrides so settings and limiter are swapped in one place.
    return request.app.dependency_overrides.get(provider, provider)()


def _bearer_credentials(request: Request) -> HTTPAuthorizationCredentials | None:
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer" or not token:
        return None
    return HTTPAuthorizationCredentials(scheme=scheme, credentials=token)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Count each request against the caller's per-role budget before anything else runs.

    Rejected requests get 429 TooManyRequests (with Retry-After); a limiter
    failure under the fail-closed policy gets 503 ServiceUnavailable. Every
    response passing through, errors included, carries X-RateLimit-Limit and
    X-RateLimit-Remaining.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = _resolve(request, get_settings)
        limiter = _resolve(request, get_rate_limiter)

        role, user_id = identify_caller(_bearer_credentials(request), settings)
        key = rate_limit_key(role, user_id, request.client.host if request.client else None)
        try:
            decision = await check_rate_limit(limiter, settings, role, key)
        except RateLimitServiceError:
            return error_response(ServiceUnavailableError("Rate limiting is temporarily unavailable."))

        if decision.allowed:
            response = await call_next(request)
        else:
            logger.warning(
                "Rate limit exceeded",
                extra={"rate_limit_key": key, "role": role.value, "path": request.url.path},
            )
            response = error_response(
                TooManyRequestsError(
                    f"Too many requests for role '{role.value}'. Try again later.",
                    retry_after=decision.retry_after,
                )
            )
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
