"""
Notely Backend - Rate Limiting Middleware
==========================================

What:  The two admission-control stages in front of every API route.
How:   Each middleware asks its limiter for a decision and either forwards
       the request or answers 429 itself, stopping the chain.
Who:   Registered by create_app(); the limiter instances are passed in.
When:  Outermost in the middleware chain, distributed stage first.

    Request ──▶ DistributedRateLimitMiddleware (per client IP, Redis)
            ──▶ LocalRateLimitMiddleware       (whole process, memory)
            ──▶ CORS ──▶ Request ID ──▶ Logging ──▶ Route

Rejection bodies:
    Distributed: {"error", "message", "details": {"limit", "remaining", "reset"}}
    Local:       {"status": "fail", "statusCode": 429, "error", "message"}

Store failures in the distributed stage are logged and re-raised. They
reach the catch-all exception handler (HTTP 500); the request is never
admitted without a count.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from notely.exceptions import RateLimitStoreError
from notely.services.rate_limiter import DistributedRateLimiter, LocalRateLimiter

logger = logging.getLogger(__name__)

# Health checks and API docs must stay reachable under load
EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


def get_client_id(request: Request, trust_proxy: bool = False) -> str:
    """
    Identify the client for per-client quotas.

    Order:
        1. First X-Forwarded-For entry, only when trust_proxy is enabled
        2. The socket peer address
        3. "unknown" (e.g. some test transports provide no client)
    """
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return getattr(request.client, "host", None) or "unknown"


class DistributedRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client fixed-window limit shared by every process.

    Default: 10 requests per 60-second window per client IP.

    Response on rate limit:
        HTTP 429 Too Many Requests
        Retry-After header: seconds until the window resets
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: DistributedRateLimiter,
        trust_proxy: bool = False,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy = trust_proxy

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        client_id = get_client_id(request, self.trust_proxy)

        try:
            result = await self.limiter.limit(client_id)
        except RateLimitStoreError as exc:
            logger.error(
                "Rate limit store error for %s %s from %s: %s | Context: %s",
                request.method,
                request.url.path,
                client_id,
                exc.message,
                exc.context,
            )
            raise

        if not result.success:
            retry_after = result.retry_after(self.limiter.clock())
            logger.warning(
                "Distributed rate limit exceeded for %s: limit %d per %ds",
                client_id,
                result.limit,
                self.limiter.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too Many Requests",
                    "message": "Too many requests. Please try again later.",
                    "details": {
                        "limit": result.limit,
                        "remaining": result.remaining,
                        "reset": result.reset,
                    },
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)


class LocalRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Process-wide fixed-window limit: all clients share one counter.

    Default: 25 requests per 6000-second (100 minute) window.

    Headers (draft IETF RateLimit fields, legacy X-RateLimit-* not sent):
        RateLimit-Policy:    "<limit>;w=<window>"
        RateLimit-Limit:     max requests per window
        RateLimit-Remaining: requests left in the window
        RateLimit-Reset:     seconds until the window resets
    """

    def __init__(self, app: ASGIApp, limiter: LocalRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        result = await self.limiter.hit()
        reset_in = self.limiter.seconds_until_reset(result)
        headers = {
            "RateLimit-Policy": self.limiter.policy,
            "RateLimit-Limit": str(result.limit),
            "RateLimit-Remaining": str(result.remaining),
            "RateLimit-Reset": str(reset_in),
        }

        if not result.allowed:
            logger.warning(
                "Local rate limit exceeded: %d requests per %ds window",
                result.limit,
                self.limiter.window,
            )
            headers["Retry-After"] = str(max(1, reset_in))
            return JSONResponse(
                status_code=429,
                content={
                    "status": "fail",
                    "statusCode": 429,
                    "error": "Too Many Requests",
                    "message": "Rate limit exceeded. Please try again later.",
                },
                headers=headers,
            )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
