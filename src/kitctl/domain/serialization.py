"""YAML rendering for stored objects.

Output must be byte-stable for a given input structure so that git diffs
only show real state transitions. Values are normalized to plain YAML
types before dumping and mappings are emitted in a fixed key order:

- top level: :data:`CANONICAL_KEY_ORDER` first, remaining keys sorted,
- nested: keys sorted alphabetically.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kitctl.errors import SerializationError

CANONICAL_KEY_ORDER: list[str] = [
    "apiVersion",
    "kind",
    "metadata",
    "spec",
    "data",
    "stringData",
    "status",
]


def _new_yaml() -> YAML:
    """Create a fresh dumper.

    ruamel.yaml's ``YAML`` object is stateful and a failed dump can leave
    it in a broken state, so one instance per call.
    """
    y = YAML()
    y.default_flow_style = False
    y.width = 4096
    y.indent(mapping=2, sequence=4, offset=2)
    return y


def _key_path(parent: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{parent}[{key}]"
    return f"{parent}.{key}" if parent else key


def _normalize(value: Any, path: str) -> Any:
    """Recursively convert *value* into sorted plain YAML types."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                msg = f"unsupported key type {type(key).__name__} at {path or '<root>'}"
                raise SerializationError(msg, stage="serialize", detail={"path": path})
        return {str(k): _normalize(value[k], _key_path(path, k)) for k in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_normalize(item, _key_path(path, i)) for i, item in enumerate(value)]
    msg = f"unsupported value type {type(value).__name__} at {path or '<root>'}"
    raise SerializationError(msg, stage="serialize", detail={"path": path})


def order_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return a normalized copy of *fields* in canonical key order."""
    normalized = _normalize(fields, "")
    ordered: dict[str, Any] = {}
    for key in CANONICAL_KEY_ORDER:
        if key in normalized:
            ordered[key] = normalized[key]
    for key in normalized:
        if key not in ordered:
            ordered[key] = normalized[key]
    return ordered


def serialize_object(fields: Mapping[str, Any]) -> bytes:
    """Render *fields* as UTF-8 YAML.

    Raises:
        SerializationError: a value or key has a type YAML cannot express.
    """
    ordered = order_fields(fields)
    buf = StringIO()
    try:
        _new_yaml().dump(ordered, buf)
    except YAMLError as exc:
        raise SerializationError(
            f"failed to marshal to yaml: {exc}", stage="serialize"
        ) from exc
    return buf.getvalue().encode("utf-8")


def parse_object(data: bytes | str) -> dict[str, Any]:
    """Parse a stored file back into a plain ``dict``."""
    loaded = YAML(typ="safe", pure=True).load(data)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = f"expected a mapping, got {type(loaded).__name__}"
        raise SerializationError(msg, stage="parse")
    return loaded


def parse_documents(text: str) -> list[dict[str, Any]]:
    """Parse one or more YAML (or JSON) documents into objects.

    Empty documents are dropped and ``kind: *List`` documents expand to
    their ``items``, matching what ``kubectl get -o yaml`` prints.

    Raises:
        SerializationError: the text is not valid YAML or a document is
            not a mapping.
    """
    try:
        loaded = list(YAML(typ="safe", pure=True).load_all(text))
    except YAMLError as exc:
        raise SerializationError(f"failed to parse documents: {exc}", stage="parse") from exc

    documents: list[dict[str, Any]] = []
    for doc in loaded:
        if doc is None:
            continue
        if not isinstance(doc, dict):
            msg = f"expected a mapping, got {type(doc).__name__}"
            raise SerializationError(msg, stage="parse")
        kind = doc.get("kind")
        items = doc.get("items")
        if isinstance(kind, str) and kind.endswith("List") and isinstance(items, list):
            documents.extend(item for item in items if isinstance(item, dict))
        else:
            documents.append(doc)
    return documents
