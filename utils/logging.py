import logging
import sys
import time
from typing import Optional

from fastapi import Request

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "botocore", "boto3", "urllib3")

# Long-lived streams would only log their connect time
UNTIMED_PATH_SUFFIXES = ("/notifications/stream",)

access_logger = logging.getLogger("purchase_requests.access")


def setup_logging(level: Optional[str] = "INFO") -> None:
    """
    Configure root logging once per process: one stdout handler with a
    pipe-separated format, and the noisy driver/SDK loggers held at WARNING.
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Reloads re-run the factory
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


async def log_requests(request: Request, call_next):
    """
    HTTP middleware: one access line per request with status and latency.
    Server errors are logged at ERROR, client errors at WARNING.
    """
    if request.url.path.endswith(UNTIMED_PATH_SUFFIXES):
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000

    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO
    access_logger.log(
        level,
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response
