from __future__ import annotations

import json
from typing import Any

from fastapi import HTTPException

from document_manager.schemas.universal import FilterClause, Page, SortClause, UniversalQuery
from document_manager.services.entity_service import ENTITY_MUTABLE_FIELDS, EntityService
from document_manager.services.validation import ValidationEngine, ValidationIssue, ValidationResult

VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"


def _validation_error(message: str, *results: ValidationResult) -> HTTPException:
    issues: list[ValidationIssue] = [issue for result in results for issue in result.errors]
    return HTTPException(
        status_code=400,
        detail={
            "code": VALIDATION_ERROR,
            "message": message,
            "errors": [issue.as_dict() for issue in issues],
        },
    )


def _require_valid(message: str, *results: ValidationResult) -> None:
    if any(not result.is_valid for result in results):
        raise _validation_error(message, *results)


def _not_found(entity_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail={"code": NOT_FOUND, "message": f"Entity {entity_id} not found"})


def _query_number(raw: str | None) -> Any:
    if raw is None:
        return None
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        # Left as text so validation reports INVALID_TYPE.
        return text


def parse_sort(sort_string: str | None) -> list[dict[str, Any]]:
    """Parse ``field:dir,field2:dir2``; position becomes the sort priority."""
    if not sort_string:
        return []
    parsed: list[dict[str, Any]] = []
    for position, item in enumerate(sort_string.split(",")):
        name, _, direction = item.strip().partition(":")
        parsed.append({"field": name.strip(), "direction": direction.strip() or "asc", "priority": position})
    return parsed


def parse_filters(filters_string: str | None) -> Any:
    if not filters_string:
        return []
    try:
        return json.loads(filters_string)
    except json.JSONDecodeError:
        return filters_string


def clean_entity_payload(payload: Any, engine: ValidationEngine) -> Any:
    if not isinstance(payload, dict):
        return payload
    cleaned: dict[str, Any] = {}
    for key in ENTITY_MUTABLE_FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        if key in {"title", "description"} and isinstance(value, str):
            value = engine.sanitize_input(value)
        elif key == "tags" and isinstance(value, list):
            value = [engine.sanitize_input(tag) if isinstance(tag, str) else tag for tag in value]
        cleaned[key] = value
    return cleaned


def _present(item: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in item.items() if value is not None}


def _search(
    engine: ValidationEngine,
    service: EntityService,
    filters: Any,
    sort: Any,
    pagination: Any,
) -> dict[str, Any]:
    pagination_result = engine.validate_pagination(pagination)
    sort_result = engine.validate_sort(sort)
    filters_result = engine.validate_filters(filters)
    _require_valid("Invalid search parameters", pagination_result, sort_result, filters_result)

    pagination = pagination or {}
    query = UniversalQuery(
        filters=[FilterClause(**item) for item in filters or []],
        sort=[SortClause(**_present(item)) for item in sort or []],
        page=Page(
            page=int(pagination.get("page") or 1),
            page_size=int(pagination.get("pageSize") or engine.options.default_page_size),
        ),
    )
    return service.search(query.filters, query.sort, query.page)


def list_entities_service(
    page: str | None,
    page_size: str | None,
    sort: str | None,
    filters: str | None,
    engine: ValidationEngine,
    service: EntityService,
) -> dict[str, Any]:
    pagination = {
        key: value
        for key, value in (("page", _query_number(page)), ("pageSize", _query_number(page_size)))
        if value is not None
    }
    return _search(engine, service, parse_filters(filters), parse_sort(sort), pagination)


def search_entities_service(payload: Any, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail={"code": VALIDATION_ERROR, "message": "Body must be a JSON object"})
    return _search(engine, service, payload.get("filters"), payload.get("sort"), payload.get("pagination"))


def get_entity_service(entity_id: str, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    _require_valid("Invalid entity ID", engine.validate_id(entity_id))
    entity = service.get(entity_id)
    if entity is None:
        raise _not_found(entity_id)
    return entity


def create_entity_service(payload: Any, user: str, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    cleaned = clean_entity_payload(payload, engine)
    _require_valid("Validation failed", engine.validate_create_entity(cleaned))
    return service.create(cleaned, user)


def update_entity_service(
    entity_id: str,
    payload: Any,
    engine: ValidationEngine,
    service: EntityService,
) -> dict[str, Any]:
    cleaned = clean_entity_payload(payload, engine)
    _require_valid("Validation failed", engine.validate_id(entity_id), engine.validate_update_entity(cleaned))
    entity = service.update(entity_id, cleaned)
    if entity is None:
        raise _not_found(entity_id)
    return entity


def delete_entity_service(entity_id: str, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    _require_valid("Invalid entity ID", engine.validate_id(entity_id))
    if not service.delete(entity_id):
        raise _not_found(entity_id)
    return {"success": True, "id": entity_id}


def _body_list(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def bulk_create_service(payload: Any, user: str, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    entities = _body_list(payload, "entities")
    if isinstance(entities, list):
        entities = [clean_entity_payload(entity, engine) for entity in entities]
    _require_valid("Validation failed", engine.validate_bulk_create(entities))
    return service.bulk_create(entities, user).as_payload("create")


def bulk_update_service(payload: Any, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    updates = _body_list(payload, "updates")
    if isinstance(updates, list):
        updates = [
            {**update, "attributes": clean_entity_payload(update.get("attributes"), engine)}
            if isinstance(update, dict) and "attributes" in update
            else update
            for update in updates
        ]
    _require_valid("Validation failed", engine.validate_bulk_update(updates))
    return service.bulk_update(updates).as_payload("update")


def bulk_delete_service(payload: Any, engine: ValidationEngine, service: EntityService) -> dict[str, Any]:
    ids = _body_list(payload, "ids")
    _require_valid("Validation failed", engine.validate_bulk_delete(ids))
    return service.bulk_delete(ids).as_payload("delete")


def validate_entity_service(payload: Any, is_update: bool, engine: ValidationEngine) -> dict[str, Any]:
    return engine.validate_entity(clean_entity_payload(payload, engine), is_update=is_update).as_dict()
