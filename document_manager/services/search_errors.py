from __future__ import annotations

from typing import Any

from opensearchpy.exceptions import TransportError

KIND_BY_STATUS = {
    400: "bad_request",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
}


class SearchBackendError(Exception):
    """The search backend rejected a request. Never retried here."""

    def __init__(self, status_code: int, kind: str, message: str, error_type: str = "unknown_error"):
        self.status_code = status_code
        self.kind = kind
        self.message = message
        self.error_type = error_type
        super().__init__(message)

    def as_dict(self) -> dict[str, Any]:
        return {"statusCode": self.status_code, "error": self.error_type, "message": self.message}


def _kind_for(status_code: int) -> str:
    return KIND_BY_STATUS.get(status_code, "internal")


def from_transport_error(exc: TransportError) -> SearchBackendError:
    status = exc.status_code if isinstance(exc.status_code, int) else 500
    info = exc.info if isinstance(exc.info, dict) else {}
    body_error = info.get("error")
    error_type = "unknown_error"
    reason = None
    if isinstance(body_error, dict):
        error_type = str(body_error.get("type") or error_type)
        reason = body_error.get("reason")
    elif isinstance(exc.error, str) and exc.error:
        error_type = exc.error
    message = str(reason or exc.error or "An unknown error occurred")
    # Anything that is not a mapped client error surfaces as 500.
    kind = _kind_for(status)
    return SearchBackendError(
        status_code=status if kind != "internal" else 500,
        kind=kind,
        message=message,
        error_type=error_type,
    )
