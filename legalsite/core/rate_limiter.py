"""
Per-IP sliding-window rate limiter.

Every request (pages, assets and API alike) counts against the client's
window. Limiting is switched on only for production deployments; local and
staging environments pass everything through.

Usage:
    app.add_middleware(
        RateLimitMiddleware,
        enabled=settings.is_production,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
"""

import ipaddress
import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Deque, Dict, Iterable, List

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from legalsite.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_trusted_networks(entries: Iterable[str]) -> List[Network]:
    """Parse TRUSTED_PROXIES setting into network objects."""
    nets: List[Network] = []
    for entry in entries:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    return nets


_trusted_networks = parse_trusted_networks(settings.TRUSTED_PROXIES)


def _is_trusted_proxy(ip_str: str, networks: List[Network]) -> bool:
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in networks)


def get_client_ip(request: Request, networks: List[Network] | None = None) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    networks = _trusted_networks if networks is None else networks
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip, networks):
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        # Rightmost untrusted hop is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip, networks):
                return ip
        if parts:
            return parts[0]

    return direct_ip


class SlidingWindowLimiter:
    """Thread-safe in-memory counter (single-instance only).

    Clients idle for a whole window are dropped at most once per window.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        """Record a request for key; False when the window is already full."""
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._evict_idle(window_start)
                self._last_sweep = now

            window = self._windows[key]
            while window and window[0] <= window_start:
                window.popleft()

            if len(window) >= self.max_requests:
                return False

            window.append(now)
            return True

    def _evict_idle(self, window_start: float) -> None:
        # caller holds the lock
        idle = [
            key
            for key, window in self._windows.items()
            if not window or window[-1] <= window_start
        ]
        for key in idle:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def stats(self) -> dict:
        with self._lock:
            return {key: len(window) for key, window in self._windows.items()}


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        enabled: bool = True,
        max_requests: int = 1000,
        window_seconds: float = 15 * 60,
        limiter: SlidingWindowLimiter | None = None,
    ):
        super().__init__(app)
        self.enabled = enabled
        self.limiter = limiter or SlidingWindowLimiter(max_requests, window_seconds)

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        client_ip = get_client_ip(request)
        if not self.limiter.hit(client_ip):
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": RATE_LIMIT_MESSAGE},
            )

        return await call_next(request)
