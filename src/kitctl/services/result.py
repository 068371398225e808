"""ServiceResult and ServiceError: what every service method returns.

Store exceptions stop at the service layer. Callers (the CLI today)
branch on ``ok`` and read ``error.code`` / ``error.detail["stage"]``
instead of catching :class:`~kitctl.errors.KitError`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from kitctl.errors import KitError


class ServiceError(BaseModel):
    """Failure payload: taxonomy code, message and the failing stage."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: KitError) -> ServiceError:
        return cls(
            code=exc.code,
            message=str(exc),
            detail={"stage": exc.stage, **exc.detail},
        )


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: False when ``error`` is set.
        op: Operation name, also used to pick a renderer (``"write"``).
        data: Operation payload; failed batches still carry what succeeded.
        warnings: Non-fatal problems, e.g. failed watch events.
        error: Set when ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def failure(cls, op: str, exc: KitError, **data: Any) -> ServiceResult:
        """Failed result for *op* built from a store exception."""
        return cls(ok=False, op=op, data=data, error=ServiceError.from_exception(exc))
