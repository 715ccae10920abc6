from __future__ import annotations

import logging
from typing import Any, Mapping

from opensearchpy.exceptions import NotFoundError, TransportError

from document_manager.services.document_flattener import describe_fields, flatten, unflatten
from document_manager.services.entity_service import hits_total
from document_manager.services.search_errors import from_transport_error

_LOG = logging.getLogger("document_manager.documents")

SORT_DIRECTIONS = ("asc", "desc")


def parse_sort_param(sort: str | None) -> list[dict[str, Any]]:
    """``field`` or ``field:asc|desc`` to an OpenSearch sort clause."""
    if not sort:
        return []
    name, _, direction = sort.strip().partition(":")
    direction = direction.strip().lower() or "asc"
    if not name.strip() or direction not in SORT_DIRECTIONS:
        raise ValueError(f'Sort must look like "field" or "field:asc|desc", got "{sort}"')
    return [{name.strip(): {"order": direction}}]


def _write_result(response: dict[str, Any], index: str, doc_id: str | None) -> dict[str, Any]:
    return {
        "_id": response.get("_id", doc_id),
        "_index": response.get("_index", index),
        "_version": response.get("_version"),
        "result": response.get("result"),
    }


class DocumentService:
    """Read and write arbitrary documents of any index, whole or as flat editable fields."""

    def __init__(self, client: Any, *, refresh: str | bool = "wait_for", logger: logging.Logger | None = None):
        self.client = client
        self.refresh = refresh
        self.log = logger or _LOG

    def _fail(self, action: str, index: str, doc_id: str | None, exc: TransportError):
        self.log.error("%s failed index=%s id=%s error=%s", action, index, doc_id, exc)
        return from_transport_error(exc)

    def list_documents(self, index: str, offset: int = 0, size: int = 20, sort: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"from": offset, "size": size, "query": {"match_all": {}}}
        sort_clause = parse_sort_param(sort)
        if sort_clause:
            body["sort"] = sort_clause
        try:
            response = self.client.search(index=index, body=body)
        except TransportError as exc:
            raise self._fail("search", index, None, exc) from exc
        hits = response.get("hits") or {}
        return {
            "total": hits_total(hits),
            "hits": [
                {
                    "_id": hit.get("_id"),
                    "_index": hit.get("_index", index),
                    "_score": hit.get("_score"),
                    "_source": hit.get("_source"),
                }
                for hit in hits.get("hits") or []
            ],
        }

    def get_document(self, index: str, doc_id: str) -> dict[str, Any] | None:
        try:
            response = self.client.get(index=index, id=doc_id)
        except NotFoundError:
            return None
        except TransportError as exc:
            raise self._fail("get", index, doc_id, exc) from exc
        if not response.get("found", True):
            return None
        return {
            "_id": response.get("_id", doc_id),
            "_index": response.get("_index", index),
            "_version": response.get("_version"),
            "_source": response.get("_source") or {},
        }

    def index_document(self, index: str, document: Mapping[str, Any], doc_id: str | None = None) -> dict[str, Any]:
        """Create or fully replace a document; without ``doc_id`` the backend assigns one."""
        kwargs: dict[str, Any] = {"index": index, "body": dict(document), "refresh": self.refresh}
        if doc_id is not None:
            kwargs["id"] = doc_id
        try:
            response = self.client.index(**kwargs)
        except TransportError as exc:
            raise self._fail("index", index, doc_id, exc) from exc
        result = _write_result(response, index, doc_id)
        self.log.debug("document %s/%s %s", index, result["_id"], result["result"])
        return result

    def delete_document(self, index: str, doc_id: str) -> dict[str, Any] | None:
        try:
            response = self.client.delete(index=index, id=doc_id, refresh=self.refresh)
        except NotFoundError:
            return None
        except TransportError as exc:
            raise self._fail("delete", index, doc_id, exc) from exc
        return _write_result(response, index, doc_id)

    def get_document_fields(self, index: str, doc_id: str) -> dict[str, Any] | None:
        document = self.get_document(index, doc_id)
        if document is None:
            return None
        source = document["_source"]
        return {
            "_id": document["_id"],
            "_index": document["_index"],
            "_version": document["_version"],
            "fields": flatten(source),
            "tree": [item.as_dict() for item in describe_fields(source)],
        }

    def put_document_fields(self, index: str, doc_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        # Replaces the whole document, creating it when absent; one backend call.
        document = unflatten(fields)
        if not isinstance(document, dict):
            raise ValueError("Flattened fields must describe a JSON object")
        result = self.index_document(index, document, doc_id)
        self.log.debug("document %s/%s written from %s flat fields", index, doc_id, len(fields))
        return {**result, "document": document}
