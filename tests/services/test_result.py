"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from kitctl.errors import MissingFieldError, NotFoundError, VersionControlError
from kitctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="write")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None

    def test_failure(self) -> None:
        result = ServiceResult(
            ok=False,
            op="delete",
            error=ServiceError(code="NOT_FOUND", message="gone"),
        )
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail == {}

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="write")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(ok=True, op="write", data={"path": "default/pod/web-1.yml"})
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result


class TestFromException:
    def test_failure_result(self) -> None:
        exc = NotFoundError("gone", stage="remove", detail={"path": "a.yml"})
        result = ServiceResult.failure("delete", exc, group="pod")
        assert not result.ok
        assert result.data == {"group": "pod"}
        assert result.error is not None
        assert result.error.detail == {"stage": "remove", "path": "a.yml"}

    def test_keeps_code_stage_and_detail(self) -> None:
        exc = MissingFieldError(
            "not found: metadata.namespace",
            stage="extract",
            detail={"field": "metadata.namespace"},
        )
        error = ServiceError.from_exception(exc)
        assert error.code == "MISSING_FIELD"
        assert error.message == "extract: not found: metadata.namespace"
        assert error.detail == {"stage": "extract", "field": "metadata.namespace"}

    def test_subclass_codes(self) -> None:
        assert ServiceError.from_exception(NotFoundError("x", stage="remove")).code == "NOT_FOUND"
        vcs = ServiceError.from_exception(
            VersionControlError("x", stage="commit", detail={"returncode": 128})
        )
        assert vcs.code == "VERSION_CONTROL"
        assert vcs.detail == {"stage": "commit", "returncode": 128}
