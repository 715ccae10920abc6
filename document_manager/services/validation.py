from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

REQUIRED = "REQUIRED"
EMPTY_VALUE = "EMPTY_VALUE"
MAX_LENGTH = "MAX_LENGTH"
MIN_LENGTH = "MIN_LENGTH"
OUT_OF_RANGE = "OUT_OF_RANGE"
INVALID_VALUE = "INVALID_VALUE"
INVALID_TYPE = "INVALID_TYPE"
MAX_ITEMS = "MAX_ITEMS"
MAX_FILTERS = "MAX_FILTERS"
MAX_SORT_FIELDS = "MAX_SORT_FIELDS"
MAX_BULK_SIZE = "MAX_BULK_SIZE"
EMPTY_ARRAY = "EMPTY_ARRAY"

VALID_STATUSES = ("active", "inactive", "archived")
VALID_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "in", "between", "exists", "contains")
VALUELESS_OPERATORS = ("exists",)
ARRAY_OPERATORS = ("in", "between")
SORT_DIRECTIONS = ("asc", "desc")

FILTERABLE_FIELDS = (
    "id",
    "title",
    "description",
    "status",
    "priority",
    "tags",
    "createdAt",
    "updatedAt",
    "createdBy",
)
SORTABLE_FIELDS = ("id", "title", "status", "priority", "createdAt", "updatedAt", "createdBy")

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 5000
PRIORITY_MIN = 0
PRIORITY_MAX = 1000
MAX_TAGS = 20
TAG_MAX_LENGTH = 50
ID_MAX_LENGTH = 100

_PATH_RESERVED_CHARS = (".", "[", "]")


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    code: str
    message: str | None = None

    def prefixed(self, prefix: str) -> "ValidationIssue":
        path = f"{prefix}.{self.field}" if self.field else prefix
        return ValidationIssue(field=path, code=self.code, message=self.message)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"field": self.field, "code": self.code}
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes_for(self, field_path: str) -> list[str]:
        return [issue.code for issue in self.errors if issue.field == field_path]

    def as_dict(self) -> dict[str, Any]:
        return {"isValid": self.is_valid, "errors": [issue.as_dict() for issue in self.errors]}


@dataclass(frozen=True)
class ValidationOptions:
    max_page_size: int = 100
    default_page_size: int = 25
    max_filters: int = 10
    max_sort_fields: int = 5
    max_bulk_size: int = 100


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return _is_number(value)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _prefixed(issues: Iterable[ValidationIssue], prefix: str) -> list[ValidationIssue]:
    return [issue.prefixed(prefix) for issue in issues]


class ValidationEngine:
    """Structural and semantic checks for entities, queries and bulk payloads.

    Every check collects all problems it finds; nothing here raises for bad
    input, so callers can report every offending field in one response.
    """

    def __init__(self, options: ValidationOptions):
        self.options = options

    def validate_entity(self, candidate: Any, is_update: bool = False) -> ValidationResult:
        if not isinstance(candidate, dict):
            return ValidationResult([ValidationIssue("", INVALID_TYPE, "Entity must be a non-null object")])

        errors: list[ValidationIssue] = []

        title = candidate.get("title")
        if title is None:
            if not is_update:
                errors.append(ValidationIssue("title", REQUIRED, "Title is required"))
        elif not isinstance(title, str):
            errors.append(ValidationIssue("title", INVALID_TYPE, "Title must be a string"))
        elif not title.strip():
            errors.append(ValidationIssue("title", EMPTY_VALUE, "Title cannot be empty"))
        elif len(title) > TITLE_MAX_LENGTH:
            errors.append(
                ValidationIssue("title", MAX_LENGTH, f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
            )

        description = candidate.get("description")
        if description is not None:
            if not isinstance(description, str):
                errors.append(ValidationIssue("description", INVALID_TYPE, "Description must be a string"))
            elif len(description) > DESCRIPTION_MAX_LENGTH:
                errors.append(
                    ValidationIssue(
                        "description",
                        MAX_LENGTH,
                        f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters",
                    )
                )

        status = candidate.get("status")
        if status is not None and status not in VALID_STATUSES:
            errors.append(
                ValidationIssue("status", INVALID_VALUE, "Status must be one of: " + ", ".join(VALID_STATUSES))
            )

        priority = candidate.get("priority")
        if priority is not None:
            if not _is_number(priority):
                errors.append(ValidationIssue("priority", INVALID_TYPE, "Priority must be a number"))
            elif not _is_integer(priority):
                errors.append(ValidationIssue("priority", INVALID_VALUE, "Priority must be an integer"))
            elif priority < PRIORITY_MIN or priority > PRIORITY_MAX:
                errors.append(
                    ValidationIssue(
                        "priority",
                        OUT_OF_RANGE,
                        f"Priority must be between {PRIORITY_MIN} and {PRIORITY_MAX}",
                    )
                )

        tags = candidate.get("tags")
        if tags is not None:
            errors.extend(self._validate_tags(tags))

        return ValidationResult(errors)

    def _validate_tags(self, tags: Any) -> list[ValidationIssue]:
        if not _is_array(tags):
            return [ValidationIssue("tags", INVALID_TYPE, "Tags must be an array")]
        errors: list[ValidationIssue] = []
        for index, tag in enumerate(tags):
            if not isinstance(tag, str):
                errors.append(ValidationIssue(f"tags[{index}]", INVALID_TYPE, "Each tag must be a string"))
            elif len(tag) > TAG_MAX_LENGTH:
                errors.append(
                    ValidationIssue(
                        f"tags[{index}]",
                        MAX_LENGTH,
                        f"Each tag cannot exceed {TAG_MAX_LENGTH} characters",
                    )
                )
        if len(tags) > MAX_TAGS:
            errors.append(ValidationIssue("tags", MAX_ITEMS, f"Cannot have more than {MAX_TAGS} tags"))
        return errors

    def validate_create_entity(self, candidate: Any) -> ValidationResult:
        return self.validate_entity(candidate, is_update=False)

    def validate_update_entity(self, candidate: Any) -> ValidationResult:
        return self.validate_entity(candidate, is_update=True)

    def validate_filters(self, filters: Any) -> ValidationResult:
        if filters is None:
            return ValidationResult()
        if not _is_array(filters):
            return ValidationResult([ValidationIssue("filters", INVALID_TYPE, "Filters must be an array")])

        errors: list[ValidationIssue] = []
        if len(filters) > self.options.max_filters:
            errors.append(
                ValidationIssue(
                    "filters",
                    MAX_FILTERS,
                    f"Cannot have more than {self.options.max_filters} filters",
                )
            )
        for index, item in enumerate(filters):
            errors.extend(_prefixed(self._validate_single_filter(item), f"filters[{index}]"))
        return ValidationResult(errors)

    def _validate_single_filter(self, item: Any) -> list[ValidationIssue]:
        if not isinstance(item, dict):
            return [ValidationIssue("", INVALID_TYPE, "Filter must be a non-null object")]

        errors = self._validate_field_name(item.get("field"), FILTERABLE_FIELDS)

        operator = item.get("operator")
        if operator is None:
            errors.append(ValidationIssue("operator", REQUIRED, "Operator is required"))
        elif not isinstance(operator, str):
            errors.append(ValidationIssue("operator", INVALID_TYPE, "Operator must be a string"))
        elif operator not in VALID_OPERATORS:
            errors.append(
                ValidationIssue(
                    "operator",
                    INVALID_VALUE,
                    "Operator must be one of: " + ", ".join(VALID_OPERATORS),
                )
            )

        value = item.get("value")
        if value is None:
            if operator not in VALUELESS_OPERATORS:
                errors.append(ValidationIssue("value", REQUIRED, "Value is required for this operator"))
        elif operator in ARRAY_OPERATORS:
            if not _is_array(value):
                errors.append(
                    ValidationIssue("value", INVALID_TYPE, f"Value must be an array for {operator} operator")
                )
            elif operator == "between" and len(value) != 2:
                errors.append(
                    ValidationIssue("value", INVALID_VALUE, "Value must have exactly 2 elements for between operator")
                )
        return errors

    def validate_sort(self, sort: Any) -> ValidationResult:
        if sort is None:
            return ValidationResult()
        if not _is_array(sort):
            return ValidationResult([ValidationIssue("sort", INVALID_TYPE, "Sort must be an array")])

        errors: list[ValidationIssue] = []
        if len(sort) > self.options.max_sort_fields:
            errors.append(
                ValidationIssue(
                    "sort",
                    MAX_SORT_FIELDS,
                    f"Cannot sort by more than {self.options.max_sort_fields} fields",
                )
            )
        for index, item in enumerate(sort):
            errors.extend(_prefixed(self._validate_single_sort(item), f"sort[{index}]"))
        return ValidationResult(errors)

    def _validate_single_sort(self, item: Any) -> list[ValidationIssue]:
        if not isinstance(item, dict):
            return [ValidationIssue("", INVALID_TYPE, "Sort must be a non-null object")]

        errors = self._validate_field_name(item.get("field"), SORTABLE_FIELDS)

        direction = item.get("direction")
        if direction is None:
            errors.append(ValidationIssue("direction", REQUIRED, "Direction is required"))
        elif not isinstance(direction, str):
            errors.append(ValidationIssue("direction", INVALID_TYPE, "Direction must be a string"))
        elif direction not in SORT_DIRECTIONS:
            errors.append(ValidationIssue("direction", INVALID_VALUE, 'Direction must be either "asc" or "desc"'))

        priority = item.get("priority")
        if priority is not None:
            if not _is_number(priority):
                errors.append(ValidationIssue("priority", INVALID_TYPE, "Priority must be a number"))
            elif not _is_integer(priority):
                errors.append(ValidationIssue("priority", INVALID_VALUE, "Priority must be an integer"))
            elif priority < 0:
                errors.append(ValidationIssue("priority", OUT_OF_RANGE, "Priority must be at least 0"))
        return errors

    def _validate_field_name(self, name: Any, allowed: tuple[str, ...]) -> list[ValidationIssue]:
        if name is None:
            return [ValidationIssue("field", REQUIRED, "Field is required")]
        if not isinstance(name, str):
            return [ValidationIssue("field", INVALID_TYPE, "Field must be a string")]
        if name not in allowed:
            return [ValidationIssue("field", INVALID_VALUE, "Field must be one of: " + ", ".join(allowed))]
        return []

    def validate_pagination(self, pagination: Any) -> ValidationResult:
        if pagination is None:
            return ValidationResult()
        if not isinstance(pagination, dict):
            return ValidationResult([ValidationIssue("pagination", INVALID_TYPE, "Pagination must be an object")])

        errors: list[ValidationIssue] = []
        page = pagination.get("page")
        if page is not None:
            if not _is_number(page):
                errors.append(ValidationIssue("page", INVALID_TYPE, "Page must be a number"))
            elif not _is_integer(page):
                errors.append(ValidationIssue("page", INVALID_VALUE, "Page must be an integer"))
            elif page < 1:
                errors.append(ValidationIssue("page", OUT_OF_RANGE, "Page must be at least 1"))

        page_size = pagination.get("pageSize")
        if page_size is not None:
            if not _is_number(page_size):
                errors.append(ValidationIssue("pageSize", INVALID_TYPE, "PageSize must be a number"))
            elif not _is_integer(page_size):
                errors.append(ValidationIssue("pageSize", INVALID_VALUE, "PageSize must be an integer"))
            elif page_size < 1:
                errors.append(ValidationIssue("pageSize", OUT_OF_RANGE, "PageSize must be at least 1"))
            elif page_size > self.options.max_page_size:
                errors.append(
                    ValidationIssue(
                        "pageSize",
                        OUT_OF_RANGE,
                        f"PageSize cannot exceed {self.options.max_page_size}",
                    )
                )
        return ValidationResult(errors)

    def validate_id(self, entity_id: Any) -> ValidationResult:
        if entity_id is None:
            return ValidationResult([ValidationIssue("id", REQUIRED, "ID is required")])
        if not isinstance(entity_id, str):
            return ValidationResult([ValidationIssue("id", INVALID_TYPE, "ID must be a string")])
        if not entity_id.strip():
            return ValidationResult([ValidationIssue("id", EMPTY_VALUE, "ID cannot be empty")])
        if len(entity_id) > ID_MAX_LENGTH:
            return ValidationResult(
                [ValidationIssue("id", MAX_LENGTH, f"ID cannot exceed {ID_MAX_LENGTH} characters")]
            )
        return ValidationResult()

    def _validate_batch(self, items: Any, name: str, verb: str) -> tuple[bool, list[ValidationIssue]]:
        if not _is_array(items):
            return False, [ValidationIssue(name, INVALID_TYPE, f"{name.capitalize()} must be an array")]
        errors: list[ValidationIssue] = []
        if len(items) == 0:
            errors.append(ValidationIssue(name, EMPTY_ARRAY, f"{name.capitalize()} array cannot be empty"))
        if len(items) > self.options.max_bulk_size:
            errors.append(
                ValidationIssue(
                    name,
                    MAX_BULK_SIZE,
                    f"Cannot {verb} more than {self.options.max_bulk_size} entities at once",
                )
            )
        return True, errors

    def validate_bulk_create(self, entities: Any) -> ValidationResult:
        is_array, errors = self._validate_batch(entities, "entities", "create")
        if not is_array:
            return ValidationResult(errors)
        for index, entity in enumerate(entities):
            errors.extend(_prefixed(self.validate_create_entity(entity).errors, f"entities[{index}]"))
        return ValidationResult(errors)

    def validate_bulk_update(self, updates: Any) -> ValidationResult:
        is_array, errors = self._validate_batch(updates, "updates", "update")
        if not is_array:
            return ValidationResult(errors)
        for index, update in enumerate(updates):
            prefix = f"updates[{index}]"
            if not isinstance(update, dict):
                errors.append(ValidationIssue(prefix, INVALID_TYPE, "Update must be a non-null object"))
                continue
            id_result = self.validate_id(update.get("id"))
            errors.extend(_prefixed(id_result.errors, prefix))
            attributes = update.get("attributes")
            if attributes is not None:
                errors.extend(
                    _prefixed(self.validate_update_entity(attributes).errors, f"{prefix}.attributes")
                )
            elif id_result.is_valid:
                errors.append(ValidationIssue(f"{prefix}.attributes", REQUIRED, "Attributes are required"))
        return ValidationResult(errors)

    def validate_bulk_delete(self, ids: Any) -> ValidationResult:
        is_array, errors = self._validate_batch(ids, "ids", "delete")
        if not is_array:
            return ValidationResult(errors)
        for index, entity_id in enumerate(ids):
            if not isinstance(entity_id, str) or not entity_id.strip():
                errors.append(ValidationIssue(f"ids[{index}]", INVALID_VALUE, "Each ID must be a non-empty string"))
        return ValidationResult(errors)

    def validate_document(self, candidate: Any) -> ValidationResult:
        if not isinstance(candidate, dict):
            return ValidationResult([ValidationIssue("document", INVALID_TYPE, "Document must be a JSON object")])
        errors = [
            ValidationIssue(
                f"document.{path}" if path else "document",
                INVALID_VALUE,
                f'Key "{key}" must be non-empty and free of ".", "[" and "]"',
            )
            for path, key in _reserved_keys(candidate, "")
        ]
        return ValidationResult(errors)

    @staticmethod
    def sanitize_input(value: Any) -> str:
        # Not output encoding: render layers still have to HTML-escape.
        if not isinstance(value, str):
            return ""
        return value.strip().replace("\0", "")


def _reserved_keys(value: Any, path: str) -> list[tuple[str, str]]:
    found: list[tuple[str, str]] = []
    if isinstance(value, dict):
        for key, child in value.items():
            key_text = str(key)
            if not key_text or any(ch in key_text for ch in _PATH_RESERVED_CHARS):
                found.append((path, key_text))
                continue
            found.extend(_reserved_keys(child, f"{path}.{key_text}" if path else key_text))
    elif _is_array(value):
        for index, child in enumerate(value):
            found.extend(_reserved_keys(child, f"{path}[{index}]"))
    return found
