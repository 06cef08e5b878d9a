"""
Process-wide log setup.

Every record carries the id of the request that produced it, so the lines of
one reconciliation (including its worker threads) can be grepped together.
"""
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | [%(request_id)s] | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
QUIET_LOGGERS = ("httpx", "openai", "sqlalchemy.engine")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def _make_id() -> str:
    return uuid.uuid4().hex[:12]


def get_request_id() -> str:
    """Id of the current request; one is assigned lazily outside any request."""
    rid = request_id_ctx.get()
    if rid is None:
        rid = _make_id()
        request_id_ctx.set(rid)
    return rid


def new_request_id() -> str:
    rid = _make_id()
    request_id_ctx.set(rid)
    return rid


class RequestIDFilter(logging.Filter):
    def filter(self, record):
        record.request_id = get_request_id()
        return True


def configure_logging(level: str = "INFO"):
    """Replace the root handlers with a single stderr handler tagged with the request id."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIDFilter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Settings import this module, so the level comes straight from the environment
configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger("budgetrec")
