"""WSGI middleware that tags requests with an id and logs them."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Iterator
from typing import Any, Callable

REQUEST_ID_KEY = "subsagg.request_id"
REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware:
    """Logs each request and its response status and time in milliseconds."""

    def __init__(self, app: Callable, logger: logging.Logger) -> None:
        self.app = app
        self.logger = logger

    def __call__(self, environ: dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        rid = str(uuid.uuid4())
        environ[REQUEST_ID_KEY] = rid
        self.logger.info(
            "Request:",
            extra={"attrs": {
                "request_id": rid,
                "method": environ.get("REQUEST_METHOD", ""),
                "url": environ.get("PATH_INFO", ""),
            }},
        )
        status = {"code": 200}

        def _start(status_line: str, headers: list, exc_info: Any = None) -> Callable:
            status["code"] = int(status_line.split(" ", 1)[0])
            headers = [h for h in headers if h[0].lower() != REQUEST_ID_HEADER.lower()]
            headers.append((REQUEST_ID_HEADER, rid))
            return start_response(status_line, headers, exc_info)

        started = time.monotonic()
        result = self.app(environ, _start)
        return self._finish(result, rid, status, started)

    def _finish(self, result: Iterable[bytes], rid: str, status: dict, started: float) -> Iterator[bytes]:
        try:
            yield from result
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()
            elapsed = int((time.monotonic() - started) * 1000)
            self.logger.info(
                "Response:",
                extra={"attrs": {"request_id": rid, "status_code": status["code"], "resp_time": str(elapsed)}},
            )