"""Structured JSON logging with request/customer context fields."""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from custrack.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
customer_id_ctx: ContextVar[str] = ContextVar("customer_id", default="")
actor_ctx: ContextVar[str] = ContextVar("actor", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.customer_id = customer_id_ctx.get()
        record.actor = actor_ctx.get()
        return True


def configure_logging() -> None:
    """Configure root logger once per service process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(customer_id)s %(actor)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


@contextmanager
def bind_log_context(customer_id: str | None = None, actor: str | None = None):
    """Attach customer and actor fields to log records emitted inside the block."""

    bound = []
    if customer_id is not None:
        bound.append((customer_id_ctx, customer_id_ctx.set(customer_id)))
    if actor is not None:
        bound.append((actor_ctx, actor_ctx.set(actor)))
    try:
        yield
    finally:
        for var, token in reversed(bound):
            var.reset(token)


logger = logging.getLogger("custrack")
