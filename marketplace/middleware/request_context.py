"""
Request context middleware: request ids, size limits, optional rate limiting
and request logging.
"""

from typing import Callable, Dict, Any
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from marketplace.services.error_handler import ErrorHandlerService
from marketplace.utils.exceptions import (
    APIException,
    BadRequestError,
    PayloadTooLargeError,
    RateLimitExceededError
)

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id, rejects oversized bodies up front and
    optionally applies a fixed-window rate limit per client IP.

    The request id is taken from an incoming X-Request-ID header when present
    and echoed on the response together with the processing time.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 10 * 1024 * 1024,
        enable_request_logging: bool = True,
        enable_rate_limiting: bool = False,
        rate_limit_requests: int = 100,
        rate_limit_window: int = 60
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging
        self.enable_rate_limiting = enable_rate_limiting
        self.rate_limit_requests = rate_limit_requests
        self.rate_limit_window = rate_limit_window
        self.request_counts: Dict[str, Dict[str, Any]] = {}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)

            if self.enable_rate_limiting:
                self._apply_rate_limiting(request)
        except APIException as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        response = await call_next(request)

        processing_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.4f}"

        if self.enable_request_logging:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} [{request_id}] "
                f"{processing_time * 1000:.1f}ms",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "processing_time": processing_time,
                    "client_ip": self._get_client_ip(request)
                }
            )

        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If the content-length header is not a number
            PayloadTooLargeError: If the declared size exceeds the limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise PayloadTooLargeError(size, self.max_request_size)

    def _apply_rate_limiting(self, request: Request) -> None:
        client_ip = self._get_client_ip(request)
        current_time = time.time()

        # Drop windows that ended long ago
        expired = [
            ip for ip, data in self.request_counts.items()
            if current_time - data["window_start"] > self.rate_limit_window * 2
        ]
        for ip in expired:
            del self.request_counts[ip]

        client_data = self.request_counts.setdefault(
            client_ip, {"count": 0, "window_start": current_time}
        )

        if current_time - client_data["window_start"] > self.rate_limit_window:
            client_data["count"] = 0
            client_data["window_start"] = current_time

        if client_data["count"] >= self.rate_limit_requests:
            retry_after = int(self.rate_limit_window - (current_time - client_data["window_start"]))
            logger.warning(f"Rate limit exceeded for {client_ip}")
            raise RateLimitExceededError(max(retry_after, 1))

        client_data["count"] += 1

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
