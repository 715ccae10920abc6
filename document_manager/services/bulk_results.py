from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Sequence, TypeVar

T = TypeVar("T")

Outcome = Literal["success", "failure"]

NOT_FOUND_ERROR = "Entity not found"
UNKNOWN_ERROR = "Unknown error"

# Wire names of the success list / success total per bulk action.
_PAYLOAD_KEYS = {
    "create": ("created", "totalCreated"),
    "update": ("updated", "totalUpdated"),
    "delete": ("deleted", "totalDeleted"),
}


@dataclass(frozen=True)
class BulkItemResult(Generic[T]):
    id: str
    outcome: Outcome
    error: str | None = None
    data: T | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"


@dataclass(frozen=True)
class BulkFailure:
    id: str
    error: str

    def as_dict(self) -> dict[str, str]:
        return {"id": self.id, "error": self.error}


@dataclass
class BulkSummary(Generic[T]):
    success: bool = True
    total_processed: int = 0
    total_success: int = 0
    total_failed: int = 0
    succeeded: list[T] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    def as_payload(self, action: str | None = None) -> dict[str, Any]:
        items_key, total_key = _PAYLOAD_KEYS.get(action or "", ("succeeded", "totalSuccess"))
        return {
            "success": self.success,
            "totalProcessed": self.total_processed,
            items_key: list(self.succeeded),
            total_key: self.total_success,
            "failed": [failure.as_dict() for failure in self.failed],
            "totalFailed": self.total_failed,
        }


def aggregate(items: Sequence[BulkItemResult[T]]) -> BulkSummary[T]:
    """Reduce per-item outcomes to one summary.

    ``success`` reflects the items only; a bulk call that went through can
    still report failed items. Successful items contribute their ``data``
    when present, otherwise their id.
    """
    summary: BulkSummary[T] = BulkSummary()
    if not items:
        return summary
    for item in items:
        summary.total_processed += 1
        if item.succeeded:
            summary.total_success += 1
            summary.succeeded.append(item.data if item.data is not None else item.id)
        else:
            summary.total_failed += 1
            summary.failed.append(BulkFailure(id=item.id, error=item.error or UNKNOWN_ERROR))
    summary.success = summary.total_failed == 0
    return summary


def _item_error(action_result: dict[str, Any]) -> str:
    error = action_result.get("error")
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or UNKNOWN_ERROR)
    if error:
        return str(error)
    return UNKNOWN_ERROR


def _is_not_found(action_result: dict[str, Any]) -> bool:
    if action_result.get("result") == "not_found" or action_result.get("status") == 404:
        return True
    error = action_result.get("error")
    return isinstance(error, dict) and error.get("type") == "document_missing_exception"


def item_from_bulk_entry(action: str, entry: dict[str, Any], fallback_id: str, payload: Any = None) -> BulkItemResult:
    action_result = entry.get(action) or next(iter(entry.values()), {}) or {}
    item_id = str(action_result.get("_id") or fallback_id)
    status = action_result.get("status")
    if isinstance(status, int) and 200 <= status < 300 and action_result.get("result") != "not_found":
        data = payload
        source = (action_result.get("get") or {}).get("_source")
        if source is not None:
            data = source
        return BulkItemResult(id=item_id, outcome="success", data=data)
    if _is_not_found(action_result):
        return BulkItemResult(id=item_id, outcome="failure", error=NOT_FOUND_ERROR)
    return BulkItemResult(id=item_id, outcome="failure", error=_item_error(action_result))


def items_from_bulk_response(
    action: str,
    response: dict[str, Any],
    ids: Sequence[str],
    payloads: Sequence[Any] | None = None,
) -> list[BulkItemResult]:
    """Map an OpenSearch ``_bulk`` response onto per-item results.

    ``ids`` (and ``payloads``, when given) are aligned with the request
    actions; response items come back in request order.
    """
    entries = list(response.get("items") or [])
    results: list[BulkItemResult] = []
    for index, item_id in enumerate(ids):
        payload = payloads[index] if payloads is not None and index < len(payloads) else None
        if index >= len(entries):
            results.append(BulkItemResult(id=item_id, outcome="failure", error=UNKNOWN_ERROR))
            continue
        results.append(item_from_bulk_entry(action, entries[index], item_id, payload))
    return results
