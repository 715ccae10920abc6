from __future__ import annotations

import logging
from contextvars import ContextVar

from document_manager.core.config import settings

# Set per request by the HTTP middleware; "-" outside a request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_LOGGING_CONFIGURED = False


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging() -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | rid=%(request_id)s | %(message)s")
    )
    root = logging.getLogger("document_manager")
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.addHandler(handler)
    # opensearch-py logs every request at INFO; keep it to warnings.
    logging.getLogger("opensearch").setLevel(logging.WARNING)
    _LOGGING_CONFIGURED = True
