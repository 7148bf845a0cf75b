# ===== intellibook/api/middleware/rate_limit_middleware.py =====
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import threading
import time

WINDOW_SECONDS = 1.0
SWEEP_INTERVAL_SECONDS = 60.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client rate limiting for the unauthenticated storefront routes.

    Counts are kept in process memory, so each worker enforces its own limit.
    Clients idle for a full window are dropped on the next periodic sweep.
    """

    def __init__(self, app, requests_per_second: int = 10, path_prefix: str = "/api/v1/public/"):
        super().__init__(app)
        self.requests_per_second = requests_per_second
        self.path_prefix = path_prefix
        self.request_times = {}
        self._last_sweep = time.time()
        self._lock = threading.Lock()

    def _sweep(self, current_time: float):
        stale = [
            client_id for client_id, times in self.request_times.items()
            if not times or current_time - times[-1] >= WINDOW_SECONDS
        ]
        for client_id in stale:
            del self.request_times[client_id]
        self._last_sweep = current_time

    def _allow(self, client_id: str) -> bool:
        current_time = time.time()
        with self._lock:
            if current_time - self._last_sweep >= SWEEP_INTERVAL_SECONDS:
                self._sweep(current_time)

            # Sliding window: drop timestamps older than 1 second
            recent = [
                t for t in self.request_times.get(client_id, [])
                if current_time - t < WINDOW_SECONDS
            ]
            if len(recent) >= self.requests_per_second:
                self.request_times[client_id] = recent
                return False
            recent.append(current_time)
            self.request_times[client_id] = recent
            return True

    async def dispatch(self, request: Request, call_next):
        if self.requests_per_second <= 0 or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"

        if not self._allow(client_id):
            return JSONResponse(
                status_code=429,
                content={"detail": f"Rate limit exceeded: {self.requests_per_second} requests per second"},
                headers={"Retry-After": "1"}
            )

        return await call_next(request)
