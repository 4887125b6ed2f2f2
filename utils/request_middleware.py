import time
from typing import Callable, Optional
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from utils.logging import app_logger, log_request_start, log_request_end, log_error, log_periodic_stats

# Set by the generate endpoint so the outcome can be logged without parsing the body
SCHEDULE_SOURCE_HEADER = "X-Schedule-Source"
FALLBACK_DAYS_HEADER = "X-Fallback-Days"


def schedule_outcome(response: Response) -> Optional[str]:
    """Summarize how a schedule was built, e.g. "ai, 2 fallback days"."""
    source = response.headers.get(SCHEDULE_SOURCE_HEADER)
    if source is None:
        return None
    fallback_days = response.headers.get(FALLBACK_DAYS_HEADER, "0")
    return f"{source}, {fallback_days} fallback days"


class ScheduleLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its timing and, for generated schedules, whether
    the AI proposal or the deterministic distribution produced it. Requests
    slower than the threshold are logged as warnings.
    """

    def __init__(self, app, slow_request_threshold_ms: float = 1000, log_periodic_stats_interval: int = 300):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms
        self.log_periodic_stats_interval = log_periodic_stats_interval
        self.last_stats_log = time.time()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in ["/health", "/docs", "/redoc", "/openapi.json"]:
            return await call_next(request)

        user_id = request.headers.get("x-user-id")

        start_time = time.time()
        endpoint = f"{request.method} {request.url.path}"
        request_info = log_request_start(request, endpoint, user_id)

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            log_error(e, endpoint, user_id, {
                "duration_ms": duration_ms,
                "request_path": str(request.url.path),
                "request_method": request.method
            })
            log_request_end(request_info, duration_ms, 500)

            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"}
            )

        duration_ms = (time.time() - start_time) * 1000
        log_request_end(request_info, duration_ms, response.status_code, schedule_outcome(response))

        if duration_ms > self.slow_request_threshold_ms:
            app_logger.logger.warning(
                f"SLOW REQUEST | {endpoint} | "
                f"Duration: {duration_ms:.2f}ms | Threshold: {self.slow_request_threshold_ms}ms"
            )
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        current_time = time.time()
        if current_time - self.last_stats_log > self.log_periodic_stats_interval:
            log_periodic_stats()
            self.last_stats_log = current_time

        return response
