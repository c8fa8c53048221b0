"""
Logging setup and middleware for request/response tracking.
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from openapi_tool_bridge.config import Settings


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and response details."""
        start_time = time.time()

        logging.info(f"→ {request.method} {request.url.path}")

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)

        logging.info(
            f"← {request.method} {request.url.path} "
            f"{response.status_code} - {duration_ms}ms"
        )

        return response


def configure_logging(settings: Settings) -> None:
    """Configure the root logger from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Suppress verbose third-party loggers; httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def setup_logging_middleware(app: FastAPI, settings: Settings) -> None:
    """Setup logging middleware for the FastAPI application."""
    app.add_middleware(LoggingMiddleware)
    configure_logging(settings)
