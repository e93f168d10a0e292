"""Request tracing middleware: request id, timing and one log line per call."""
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("santiye-api.middleware")

# Probes are polled constantly and would drown the request log
SKIP_LOG_PATHS = {"/health", "/metrics"}

REQUEST_ID_HEADER = "X-Request-ID"

# Id of the request being served; read by RequestContextFilter
current_request_id: ContextVar[Optional[str]] = ContextVar("current_request_id", default=None)


def _project_id_from_path(path: str) -> Optional[str]:
    """``/api/v1/projects/<id>/...`` and ``/api/v1/schedule/<id>/import`` carry a project id."""
    parts = path.strip("/").split("/")
    if len(parts) >= 4 and parts[:3] == ["api", "v1", "projects"]:
        return parts[3]
    if len(parts) == 5 and parts[:3] == ["api", "v1", "schedule"] and parts[4] == "import":
        return parts[3]
    return None


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's ``X-Request-ID`` if sent,
    otherwise a fresh uuid4), echoes it back together with
    ``X-Process-Time`` and logs method, path, status and duration.
    Unhandled errors are logged with the same id before propagating.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = current_request_id.set(request_id)
        start_time = time.perf_counter()
        extra = {
            "http_method": request.method,
            "http_path": request.url.path,
            "request_id": request_id,
        }
        project_id = _project_id_from_path(request.url.path)
        if project_id:
            extra["project_id"] = project_id

        try:
            response: Response = await call_next(request)
        except Exception:
            extra["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.exception("request failed", extra=extra)
            raise
        finally:
            current_request_id.reset(token)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                "request completed",
                extra={**extra, "http_status": response.status_code, "duration_ms": duration_ms},
            )
        return response
