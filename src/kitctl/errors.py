"""Error taxonomy for the versioned file store.

Every failure surfaced by the store is a :class:`KitError` carrying the
``stage`` that produced it. The original exception (``OSError``,
``CalledProcessError``, ruamel representer errors) is chained via
``raise ... from exc`` so tracebacks keep the root cause.

The service layer maps :attr:`KitError.code` onto
:class:`~kitctl.services.result.ServiceError`.
"""

from __future__ import annotations

from typing import Any, ClassVar


class KitError(Exception):
    """Base class for all kitctl errors."""

    code: ClassVar[str] = "KIT_ERROR"

    def __init__(self, message: str, *, stage: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.detail: dict[str, Any] = detail or {}

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class ConfigurationError(KitError):
    """The repository cannot be opened or the config file is unusable."""

    code = "CONFIGURATION"


class FieldExtractionError(KitError):
    """Identifying metadata is missing or has the wrong type."""

    code = "FIELD_EXTRACTION"


class MissingFieldError(FieldExtractionError):
    """A required metadata key is absent or not a string."""

    code = "MISSING_FIELD"


class UnsafePathError(FieldExtractionError):
    """A path segment would escape its directory or the repository root."""

    code = "UNSAFE_PATH"


class SerializationError(KitError):
    """The object contains a value the YAML renderer cannot express."""

    code = "SERIALIZATION"


class FilesystemError(KitError):
    """Directory or file create, write, or remove failed."""

    code = "FILESYSTEM"


class NotFoundError(FilesystemError):
    """The file to delete does not exist."""

    code = "NOT_FOUND"


class VersionControlError(KitError):
    """A git status, add, commit, or log invocation failed."""

    code = "VERSION_CONTROL"


class EventStreamError(KitError):
    """A watch-event stream could not be decoded."""

    code = "EVENT_STREAM"
