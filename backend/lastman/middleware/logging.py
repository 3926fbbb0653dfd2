"""
backend/lastman/middleware/logging.py

Purpose:
    One structured JSON access-log line per request, tagged with the club and
    edition the request was scoped to, plus process-wide logging setup.
"""

import hashlib
import json
import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from lastman.config import settings

logger = logging.getLogger("lastman")

_EDITION_PATH = re.compile(r"/clubs/(?P<club_id>[^/]+)/editions/(?P<edition_id>[^/]+)")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # Reuse an upstream proxy id so log lines can be correlated.
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.monotonic()

        response: Response = await call_next(request)

        duration_ms = round((time.monotonic() - start) * 1000, 2)

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "client_ip_hash": hashlib.sha256(
                (request.client.host or "").encode()
            ).hexdigest()[:12] if request.client else None,
        }
        scope = _EDITION_PATH.search(request.url.path)
        if scope:
            log_data.update(scope.groupdict())

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, json.dumps(log_data))

        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
