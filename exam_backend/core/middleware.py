"""
Custom middleware for the FastAPI application
"""
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from exam_backend.core.logger import get_http_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses"""

    def __init__(self, app):
        super().__init__(app)
        self.logger = get_http_logger()

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        self.logger.info("REQUEST: %s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error("ERROR in request: %s %s | %s: %s", request.method, request.url.path, type(e).__name__, e)
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.info("RESPONSE: %s %s %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response
