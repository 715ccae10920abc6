from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from document_manager.services.search_errors import SearchBackendError

_LOG = logging.getLogger("document_manager.errors")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SearchBackendError)
    async def search_backend_error_handler(request: Request, exc: SearchBackendError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        _LOG.log(
            level,
            "search backend %s on %s %s: %s",
            exc.kind,
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.as_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _LOG.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"statusCode": 500, "error": "internal_error", "message": "An unexpected error occurred"},
        )
