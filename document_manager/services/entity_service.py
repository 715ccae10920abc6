from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

from opensearchpy.exceptions import NotFoundError, TransportError

from document_manager.schemas.universal import FilterClause, Page, SortClause
from document_manager.services.bulk_results import (
    BulkSummary,
    aggregate,
    items_from_bulk_response,
)
from document_manager.services.search_errors import from_transport_error
from document_manager.services.universal_query import QueryCompiler

_LOG = logging.getLogger("document_manager.entities")

ENTITY_OPTIONAL_FIELDS = ("description", "priority", "tags")
ENTITY_MUTABLE_FIELDS = ("title", "description", "status", "priority", "tags")
DEFAULT_STATUS = "active"
DEFAULT_USER = "system"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_entity(entity_id: str, request: dict[str, Any], user: str, now: str) -> dict[str, Any]:
    entity: dict[str, Any] = {
        "id": entity_id,
        "title": request["title"],
        "status": request.get("status") or DEFAULT_STATUS,
        "createdAt": now,
        "updatedAt": now,
        "createdBy": user or DEFAULT_USER,
    }
    for name in ENTITY_OPTIONAL_FIELDS:
        if request.get(name) is not None:
            entity[name] = request[name]
    return entity


def build_update_doc(attributes: dict[str, Any], now: str) -> dict[str, Any]:
    # Partial update: null/absent attributes keep the stored value.
    doc = {name: attributes[name] for name in ENTITY_MUTABLE_FIELDS if attributes.get(name) is not None}
    doc["updatedAt"] = now
    return doc


def hits_total(hits: dict[str, Any]) -> int:
    total = hits.get("total")
    if isinstance(total, dict):
        return int(total.get("value") or 0)
    return int(total or 0)


class EntityService:
    """Entity CRUD over one index of an injected OpenSearch client.

    Each method issues at most one backend call. Backend rejections are
    re-raised as ``SearchBackendError``; nothing is retried here.
    """

    def __init__(
        self,
        client: Any,
        index_name: str,
        compiler: QueryCompiler,
        *,
        refresh: str | bool = "true",
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.index_name = index_name
        self.compiler = compiler
        self.refresh = refresh
        self.log = logger or _LOG

    def search(
        self,
        filters: Sequence[FilterClause],
        sort: Sequence[SortClause],
        page: Page,
    ) -> dict[str, Any]:
        compiled = self.compiler.compile(filters, sort, page)
        try:
            response = self.client.search(index=self.index_name, body=compiled.to_search_body())
        except TransportError as exc:
            self.log.error("search failed index=%s error=%s", self.index_name, exc)
            raise from_transport_error(exc) from exc
        hits = response.get("hits") or {}
        total = hits_total(hits)
        entities = [hit.get("_source") for hit in hits.get("hits") or []]
        self.log.debug("search returned %s of %s entities", len(entities), total)
        return {
            "entities": entities,
            "total": total,
            "page": page.page,
            "pageSize": page.page_size,
            "hasMore": page.page * page.page_size < total,
        }

    def get(self, entity_id: str) -> dict[str, Any] | None:
        try:
            response = self.client.get(index=self.index_name, id=entity_id)
        except NotFoundError:
            return None
        except TransportError as exc:
            self.log.error("get failed id=%s error=%s", entity_id, exc)
            raise from_transport_error(exc) from exc
        if not response.get("found", True):
            return None
        return response.get("_source")

    def create(self, request: dict[str, Any], user: str) -> dict[str, Any]:
        entity = build_entity(str(uuid.uuid4()), request, user, _utc_now_iso())
        try:
            self.client.index(index=self.index_name, id=entity["id"], body=entity, refresh=self.refresh)
        except TransportError as exc:
            self.log.error("index failed error=%s", exc)
            raise from_transport_error(exc) from exc
        self.log.debug("entity %s indexed", entity["id"])
        return entity

    def update(self, entity_id: str, attributes: dict[str, Any]) -> dict[str, Any] | None:
        body = {"doc": build_update_doc(attributes, _utc_now_iso()), "_source": True}
        try:
            response = self.client.update(index=self.index_name, id=entity_id, body=body, refresh=self.refresh)
        except NotFoundError:
            return None
        except TransportError as exc:
            self.log.error("update failed id=%s error=%s", entity_id, exc)
            raise from_transport_error(exc) from exc
        self.log.debug("entity %s updated", entity_id)
        return (response.get("get") or {}).get("_source") or {"id": entity_id, **body["doc"]}

    def delete(self, entity_id: str) -> bool:
        try:
            response = self.client.delete(index=self.index_name, id=entity_id, refresh=self.refresh)
        except NotFoundError:
            return False
        except TransportError as exc:
            self.log.error("delete failed id=%s error=%s", entity_id, exc)
            raise from_transport_error(exc) from exc
        return response.get("result") == "deleted"

    def _bulk(self, operations: list[dict[str, Any]]) -> dict[str, Any]:
        try:
            return self.client.bulk(body=operations, refresh=self.refresh)
        except TransportError as exc:
            self.log.error("bulk failed index=%s error=%s", self.index_name, exc)
            raise from_transport_error(exc) from exc

    def bulk_create(self, requests: Sequence[dict[str, Any]], user: str) -> BulkSummary:
        if not requests:
            return aggregate([])
        now = _utc_now_iso()
        entities = [build_entity(str(uuid.uuid4()), request, user, now) for request in requests]
        operations: list[dict[str, Any]] = []
        for entity in entities:
            operations.append({"index": {"_index": self.index_name, "_id": entity["id"]}})
            operations.append(entity)
        response = self._bulk(operations)
        summary = aggregate(
            items_from_bulk_response("index", response, [entity["id"] for entity in entities], entities)
        )
        self.log.debug("bulk create: %s succeeded, %s failed", summary.total_success, summary.total_failed)
        return summary

    def bulk_update(self, updates: Sequence[dict[str, Any]]) -> BulkSummary:
        if not updates:
            return aggregate([])
        now = _utc_now_iso()
        operations: list[dict[str, Any]] = []
        ids: list[str] = []
        docs: list[dict[str, Any]] = []
        for update in updates:
            entity_id = str(update["id"])
            doc = build_update_doc(update.get("attributes") or {}, now)
            ids.append(entity_id)
            docs.append({"id": entity_id, **doc})
            operations.append({"update": {"_index": self.index_name, "_id": entity_id}})
            operations.append({"doc": doc, "_source": True})
        response = self._bulk(operations)
        summary = aggregate(items_from_bulk_response("update", response, ids, docs))
        self.log.debug("bulk update: %s succeeded, %s failed", summary.total_success, summary.total_failed)
        return summary

    def bulk_delete(self, ids: Sequence[str]) -> BulkSummary:
        if not ids:
            return aggregate([])
        operations = [{"delete": {"_index": self.index_name, "_id": entity_id}} for entity_id in ids]
        response = self._bulk(operations)
        summary = aggregate(items_from_bulk_response("delete", response, list(ids)))
        self.log.debug("bulk delete: %s deleted, %s failed", summary.total_success, summary.total_failed)
        return summary
