from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from document_manager.core.deps import get_document_service, get_validation_engine
from document_manager.services.document_flattener import FlattenPathError, UnsupportedKeyError
from document_manager.services.document_service import DocumentService
from document_manager.services.validation import INVALID_VALUE, ValidationEngine, ValidationIssue

router = APIRouter()


def _missing(index: str, doc_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "NOT_FOUND", "message": f"Document {doc_id} not found in {index}"},
    )


def _bad_request(message: str, errors: list[dict[str, Any]] | None = None) -> HTTPException:
    detail: dict[str, Any] = {"code": "VALIDATION_ERROR", "message": message}
    if errors is not None:
        detail["errors"] = errors
    return HTTPException(status_code=400, detail=detail)


def _document_body(payload: Any) -> dict[str, Any]:
    document = payload.get("document") if isinstance(payload, dict) else None
    if not isinstance(document, dict):
        raise _bad_request('Body must be {"document": {...}}')
    return document


@router.get("/indices/{index}/documents")
def list_documents(
    index: str,
    offset: int = Query(default=0, ge=0, alias="from"),
    size: int = Query(default=20, ge=1, le=1000),
    sort: str | None = Query(default=None),
    service: DocumentService = Depends(get_document_service),
):
    try:
        return service.list_documents(index, offset, size, sort)
    except ValueError as exc:
        raise _bad_request(str(exc)) from exc


@router.post("/indices/{index}/documents")
def create_document(
    index: str,
    payload: Any = Body(default=None),
    service: DocumentService = Depends(get_document_service),
):
    document = _document_body(payload)
    doc_id = payload.get("id")
    if doc_id is not None and (not isinstance(doc_id, str) or not doc_id.strip()):
        raise _bad_request("Document id must be a non-empty string")
    return service.index_document(index, document, doc_id)


@router.get("/indices/{index}/documents/{doc_id}")
def get_document(index: str, doc_id: str, service: DocumentService = Depends(get_document_service)):
    document = service.get_document(index, doc_id)
    if document is None:
        raise _missing(index, doc_id)
    return document


@router.put("/indices/{index}/documents/{doc_id}")
def replace_document(
    index: str,
    doc_id: str,
    payload: Any = Body(default=None),
    service: DocumentService = Depends(get_document_service),
):
    return service.index_document(index, _document_body(payload), doc_id)


@router.delete("/indices/{index}/documents/{doc_id}")
def delete_document(index: str, doc_id: str, service: DocumentService = Depends(get_document_service)):
    result = service.delete_document(index, doc_id)
    if result is None:
        raise _missing(index, doc_id)
    return result


@router.get("/indices/{index}/documents/{doc_id}/fields")
def get_document_fields(index: str, doc_id: str, service: DocumentService = Depends(get_document_service)):
    try:
        fields = service.get_document_fields(index, doc_id)
    except UnsupportedKeyError as exc:
        issue = ValidationIssue(f"document.{exc.path}" if exc.path else "document", INVALID_VALUE, str(exc))
        raise _bad_request("Document has keys that cannot be edited as flat fields", [issue.as_dict()]) from exc
    if fields is None:
        raise _missing(index, doc_id)
    return fields


@router.put("/indices/{index}/documents/{doc_id}/fields")
def put_document_fields(
    index: str,
    doc_id: str,
    payload: Any = Body(default=None),
    service: DocumentService = Depends(get_document_service),
):
    fields = payload.get("fields") if isinstance(payload, dict) else None
    if not isinstance(fields, dict):
        raise _bad_request('Body must be {"fields": {<path>: <value>}}')
    try:
        return service.put_document_fields(index, doc_id, fields)
    except (UnsupportedKeyError, FlattenPathError, ValueError) as exc:
        raise _bad_request(str(exc)) from exc


@router.post("/indices/{index}/documents/validate")
def validate_document(payload: Any = Body(default=None), engine: ValidationEngine = Depends(get_validation_engine)):
    result = engine.validate_document(payload)
    if not result.is_valid:
        raise _bad_request("Document cannot be edited as flat fields", [issue.as_dict() for issue in result.errors])
    return result.as_dict()
