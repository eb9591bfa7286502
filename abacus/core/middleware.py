from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from abacus.core.periods import is_valid_timezone
from abacus.core.periods import parse_timezone_from_prefer
from abacus.core.periods import system_timezone


# expires_at, status code, headers, body
CachedResponse = tuple[float, int, dict[str, str], bytes]


class PreferTimezoneMiddleware(BaseHTTPMiddleware):
    """Resolve the request timezone from `Prefer: timezone=<name>`."""

    def __init__(self, app, default_timezone: str | None = None) -> None:
        super().__init__(app)
        self.default_timezone = default_timezone or system_timezone()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        prefer_header = request.headers.get("prefer")
        requested = parse_timezone_from_prefer(prefer_header) if prefer_header else None

        if requested is None:
            request.state.timezone = self.default_timezone
            return await call_next(request)

        if not is_valid_timezone(requested):
            return JSONResponse(
                status_code=400, content={"error": f"Invalid timezone: {requested}"}
            )

        request.state.timezone = requested
        return await call_next(request)


class ResponseCache:
    """TTL map from (url, timezone) to a captured response.

    Expired entries are swept on every insert and the map never holds more
    than `max_entries`; the oldest insert is evicted first.
    """

    def __init__(self, ttl_seconds: int, max_entries: int = 1024) -> None:
        self.ttl_seconds = max(0, ttl_seconds)
        self.max_entries = max(1, max_entries)
        self._entries: dict[tuple[str, str], CachedResponse] = {}
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: tuple[str, str], now: float) -> CachedResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry[0] > now:
                return entry
            self._entries.pop(key, None)
            return None

    def put(
        self,
        key: tuple[str, str],
        status_code: int,
        headers: dict[str, str],
        body: bytes,
        now: float,
    ) -> None:
        with self._lock:
            self._entries.pop(key, None)
            expired = [
                stale for stale, entry in self._entries.items() if entry[0] <= now
            ]
            for stale in expired:
                del self._entries[stale]
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (now + self.ttl_seconds, status_code, headers, body)


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    """In-memory TTL cache for successful GET responses."""

    def __init__(
        self,
        app,
        ttl_seconds: int = 300,
        max_entries: int = 1024,
        exclude_paths=("/health",),
    ) -> None:
        super().__init__(app)
        self.cache = ResponseCache(ttl_seconds, max_entries)
        self.exclude_paths = frozenset(exclude_paths)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or request.url.path in self.exclude_paths:
            return await call_next(request)

        key = (str(request.url), getattr(request.state, "timezone", ""))
        entry = self.cache.get(key, monotonic())
        if entry:
            _, status_code, headers, body = entry
            return Response(content=body, status_code=status_code, headers=headers)

        response = await call_next(request)
        if response.status_code != 200:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        headers = dict(response.headers)
        headers["cache-control"] = f"max-age={self.cache.ttl_seconds}"
        headers.pop("content-length", None)
        self.cache.put(key, response.status_code, headers, body, monotonic())

        return Response(content=body, status_code=response.status_code, headers=headers)
