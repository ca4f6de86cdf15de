import logging
import time

from fastapi import Request

from quickblog.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

request_logger = logging.getLogger("quickblog.requests")


def configure_logging(level: str = None):
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


async def log_requests(request: Request, call_next):
    """HTTP middleware: one line per request with status and duration."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    client = request.client.host if request.client else "-"
    request_logger.log(
        level,
        "%s %s %s - %.1fms (%s)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        client,
    )
    return response
