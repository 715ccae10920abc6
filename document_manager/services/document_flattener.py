"""Nested JSON <-> flat ``path -> value`` conversion for the document editor.

Paths join object keys with ``.`` and address array elements with ``[index]``
(``address.lines[0]``, ``matrix[1][0]``). Leaves are scalars, ``None`` and
empty containers, so ``unflatten(flatten(doc)) == doc`` for any JSON value.

Keys that contain ``.``, ``[`` or ``]`` cannot be told apart from path syntax
and are rejected instead of being encoded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

JSONScalar = Union[str, int, float, bool, None]
JSONValue = Union[JSONScalar, list["JSONValue"], dict[str, "JSONValue"]]
PathToken = Union[str, int]

_SEGMENT_RE = re.compile(r"^([^\[\]]*)((?:\[\d+\])*)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")
_RESERVED_CHARS = (".", "[", "]")
_UNSET = object()

# Hand-edited maps may skip a few indices; larger jumps are rejected.
MAX_INDEX_GAP = 100


class UnsupportedKeyError(ValueError):
    def __init__(self, path: str, key: str):
        self.path = path
        self.key = key
        super().__init__(f'Key "{key}" at "{path or "(root)"}" cannot be used in a flattened path')


class FlattenPathError(ValueError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f'Invalid path "{path}": {reason}')


def value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def _key_path(parent: str, key: str) -> str:
    if not key or any(ch in key for ch in _RESERVED_CHARS):
        raise UnsupportedKeyError(parent, key)
    return f"{parent}.{key}" if parent else key


def _flatten_into(out: dict[str, Any], value: Any, path: str) -> None:
    kind = value_type(value)
    if kind == "object":
        if not value:
            out[path] = {}
            return
        for key, child in value.items():
            if not isinstance(key, str):
                raise UnsupportedKeyError(path, str(key))
            _flatten_into(out, child, _key_path(path, key))
    elif kind == "array":
        if not value:
            out[path] = []
            return
        for index, child in enumerate(value):
            _flatten_into(out, child, f"{path}[{index}]")
    else:
        out[path] = value


def flatten(doc: JSONValue) -> dict[str, Any]:
    """Flatten ``doc`` into an ordered ``path -> leaf`` mapping.

    A scalar root flattens to ``{"": value}``; a list root produces paths that
    start with an index (``[0].name``).
    """
    out: dict[str, Any] = {}
    _flatten_into(out, doc, "")
    return out


def parse_path(path: str) -> list[PathToken]:
    tokens: list[PathToken] = []
    if path == "":
        return tokens
    for position, segment in enumerate(path.split(".")):
        match = _SEGMENT_RE.match(segment)
        if match is None:
            raise FlattenPathError(path, f'malformed segment "{segment}"')
        name, indexes = match.group(1), match.group(2)
        if name:
            tokens.append(name)
        elif not indexes or position > 0:
            raise FlattenPathError(path, "empty key")
        tokens.extend(int(raw) for raw in _INDEX_RE.findall(indexes))
    return tokens


def _empty_for(token: PathToken) -> Any:
    return [] if isinstance(token, int) else {}


def _assign(container: Any, token: PathToken, value: Any, path: str, max_gap: int) -> None:
    if isinstance(token, int):
        if not isinstance(container, list):
            raise FlattenPathError(path, "array index used on a non-array value")
        if token - len(container) > max_gap:
            raise FlattenPathError(path, f"index {token} skips more than {max_gap} elements")
        if token >= len(container):
            # Gaps become null.
            container.extend([None] * (token + 1 - len(container)))
        container[token] = value
    else:
        if not isinstance(container, dict):
            raise FlattenPathError(path, "object key used on a non-object value")
        container[token] = value


def _child(container: Any, token: PathToken, next_token: PathToken, path: str, max_gap: int) -> Any:
    if isinstance(token, int):
        existing = container[token] if isinstance(container, list) and token < len(container) else None
    else:
        existing = container.get(token) if isinstance(container, dict) else None
    if existing is None:
        existing = _empty_for(next_token)
        _assign(container, token, existing, path, max_gap)
    elif not isinstance(existing, (dict, list)):
        raise FlattenPathError(path, "path continues below a scalar value")
    return existing


def _entries(entries: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> Iterable[tuple[str, Any]]:
    if isinstance(entries, Mapping):
        return entries.items()
    return entries


def unflatten(
    entries: Mapping[str, Any] | Iterable[tuple[str, Any]],
    *,
    max_index_gap: int = MAX_INDEX_GAP,
) -> JSONValue:
    """Rebuild the nested value described by flat ``entries``.

    Intermediate objects and arrays are created from the shape of each path.
    Conflicting paths (``a`` as a scalar and ``a.b`` as a key) raise
    :class:`FlattenPathError`.
    """
    root: Any = _UNSET
    for path, value in _entries(entries):
        tokens = parse_path(path)
        if not tokens:
            root = value
            continue
        if root is _UNSET or root is None:
            root = _empty_for(tokens[0])
        elif not isinstance(root, (dict, list)):
            raise FlattenPathError(path, "path continues below a scalar root")
        current = root
        for position, token in enumerate(tokens[:-1]):
            current = _child(current, token, tokens[position + 1], path, max_index_gap)
        _assign(current, tokens[-1], value, path, max_index_gap)
    if root is _UNSET:
        return {}
    return root


@dataclass(frozen=True)
class FieldDescriptor:
    path: str
    key: str
    value: Any
    type: str
    depth: int
    parent_path: str | None = None
    is_array_item: bool = False
    array_index: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "depth": self.depth,
            "parentPath": self.parent_path,
            "isArrayItem": self.is_array_item,
            "arrayIndex": self.array_index,
        }


def describe_fields(doc: Mapping[str, Any]) -> list[FieldDescriptor]:
    """Every node of ``doc`` in document order, containers included.

    Used by the nested editor to render a tree; editing goes through
    :func:`flatten` / :func:`unflatten`.
    """
    fields: list[FieldDescriptor] = []
    _describe_into(fields, doc, "", 0)
    return fields


def _describe_into(fields: list[FieldDescriptor], container: Any, parent: str, depth: int) -> None:
    if isinstance(container, dict):
        items = [(key, _key_path(parent, key), child, None) for key, child in container.items()]
    else:
        items = [(f"[{index}]", f"{parent}[{index}]", child, index) for index, child in enumerate(container)]
    for key, path, child, index in items:
        kind = value_type(child)
        fields.append(
            FieldDescriptor(
                path=path,
                key=key,
                value=child,
                type=kind,
                depth=depth,
                parent_path=parent or None,
                is_array_item=index is not None,
                array_index=index,
            )
        )
        if kind in {"object", "array"}:
            _describe_into(fields, child, path, depth + 1)
