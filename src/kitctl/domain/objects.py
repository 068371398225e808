"""Schema-on-read projection of producer objects.

The store treats every object as an untyped nested mapping and only
interprets two fields: ``metadata.namespace`` and ``metadata.name``.
:class:`StoredObject` is the narrow typed view produced by a fallible
conversion, so callers never cast fields at the point of use.

Accepted producer types (see :func:`to_unstructured`):

- any :class:`~collections.abc.Mapping` (parsed YAML/JSON, watch events),
- pydantic models,
- objects exposing ``to_dict()`` (the official kubernetes client models).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from kitctl.errors import FieldExtractionError, MissingFieldError

KEY_METADATA = "metadata"
KEY_NAMESPACE = "namespace"
KEY_NAME = "name"


def to_unstructured(obj: Any) -> dict[str, Any]:
    """Convert a producer object into a plain ``dict`` field map."""
    if isinstance(obj, StoredObject):
        return dict(obj.fields)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        converted = to_dict()
        if isinstance(converted, Mapping):
            return dict(converted)
    msg = f"failed to convert {type(obj).__name__} to an unstructured object"
    raise FieldExtractionError(msg, stage="extract", detail={"type": type(obj).__name__})


def get_namespace_name(unstructured: Mapping[str, Any]) -> tuple[str, str]:
    """Return ``(namespace, name)`` from an unstructured object.

    Raises:
        MissingFieldError: ``metadata`` is not a mapping, or ``namespace``
            / ``name`` is absent or not a string.
    """
    metadata = unstructured.get(KEY_METADATA)
    if not isinstance(metadata, Mapping):
        raise MissingFieldError(
            f"not found: {KEY_METADATA}",
            stage="extract",
            detail={"field": KEY_METADATA},
        )

    values: list[str] = []
    for key in (KEY_NAMESPACE, KEY_NAME):
        value = metadata.get(key)
        if not isinstance(value, str):
            field_path = f"{KEY_METADATA}.{key}"
            reason = "not found" if value is None else "not a string"
            raise MissingFieldError(
                f"{reason}: {field_path}",
                stage="extract",
                detail={"field": field_path},
            )
        values.append(value)
    return values[0], values[1]


@dataclass(frozen=True)
class StoredObject:
    """Typed projection: identity plus the opaque field map."""

    namespace: str
    name: str
    fields: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_unstructured(cls, unstructured: Mapping[str, Any]) -> StoredObject:
        namespace, name = get_namespace_name(unstructured)
        return cls(namespace=namespace, name=name, fields=dict(unstructured))

    @classmethod
    def from_object(cls, obj: Any) -> StoredObject:
        """Convert any supported producer object."""
        if isinstance(obj, StoredObject):
            return obj
        return cls.from_unstructured(to_unstructured(obj))

    @property
    def key(self) -> str:
        """``namespace/name`` identity used for ordering and logging."""
        return f"{self.namespace}/{self.name}"
