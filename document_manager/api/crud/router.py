from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from document_manager.core.deps import get_entity_service, get_request_user, get_validation_engine
from document_manager.services.entity_service import EntityService
from document_manager.services.validation import ValidationEngine

from .service import (
    bulk_create_service,
    bulk_delete_service,
    bulk_update_service,
    create_entity_service,
    delete_entity_service,
    get_entity_service as get_entity_by_id_service,
    list_entities_service,
    search_entities_service,
    update_entity_service,
    validate_entity_service,
)

router = APIRouter()


@router.get("/entities")
def list_entities(
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None, alias="pageSize"),
    sort: str | None = Query(default=None),
    filters: str | None = Query(default=None),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return list_entities_service(page, page_size, sort, filters, engine, service)


@router.post("/entities/search")
def search_entities(
    payload: Any = Body(default=None),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return search_entities_service(payload, engine, service)


@router.post("/entities/bulk/create")
def bulk_create(
    payload: Any = Body(default=None),
    user: str = Depends(get_request_user),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return bulk_create_service(payload, user, engine, service)


@router.put("/entities/bulk/update")
def bulk_update(
    payload: Any = Body(default=None),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return bulk_update_service(payload, engine, service)


@router.delete("/entities/bulk/delete")
def bulk_delete(
    payload: Any = Body(default=None),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return bulk_delete_service(payload, engine, service)


@router.get("/entities/{entity_id}")
def get_entity(
    entity_id: str,
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return get_entity_by_id_service(entity_id, engine, service)


@router.post("/entities")
def create_entity(
    payload: Any = Body(default=None),
    user: str = Depends(get_request_user),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return create_entity_service(payload, user, engine, service)


@router.put("/entities/{entity_id}")
def update_entity(
    entity_id: str,
    payload: Any = Body(default=None),
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return update_entity_service(entity_id, payload, engine, service)


@router.delete("/entities/{entity_id}")
def delete_entity(
    entity_id: str,
    engine: ValidationEngine = Depends(get_validation_engine),
    service: EntityService = Depends(get_entity_service),
):
    return delete_entity_service(entity_id, engine, service)


@router.post("/validate")
def validate_entity(
    payload: Any = Body(default=None),
    is_update: bool = Query(default=False, alias="isUpdate"),
    engine: ValidationEngine = Depends(get_validation_engine),
):
    return validate_entity_service(payload, is_update, engine)
