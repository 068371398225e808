"""Tests for StoreService."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kitctl.infrastructure.store import VersionedFileStore
from kitctl.services.events import iter_watch_events
from kitctl.services.store import StoreService
from tests.conftest import commit_count, make_object


@pytest.fixture
def service(store: VersionedFileStore) -> StoreService:
    return StoreService(store)


class TestWrite:
    def test_write(self, service: StoreService) -> None:
        result = service.write("pod", make_object(status="Running"))
        assert result.ok
        assert result.op == "write"
        assert result.data["path"] == "default/pod/web-1.yml"
        assert result.data["committed"] is True
        assert result.data["message"] == "Object changed: default/pod/web-1.yml"
        assert len(result.data["revision"]) == 40

    def test_write_unchanged(self, service: StoreService) -> None:
        service.write("pod", make_object(status="Running"))
        result = service.write("pod", make_object(status="Running"))
        assert result.ok
        assert result.data == {"path": "default/pod/web-1.yml", "committed": False}

    def test_write_missing_field(self, service: StoreService) -> None:
        result = service.write("pod", {"metadata": {"name": "web-1"}})
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "MISSING_FIELD"
        assert result.error.detail["stage"] == "extract"
        assert result.error.detail["field"] == "metadata.namespace"


class TestDelete:
    def test_delete(self, service: StoreService) -> None:
        service.write("pod", make_object())
        result = service.delete("pod", make_object())
        assert result.ok
        assert result.data["message"] == "Object deleted: default/pod/web-1.yml"

    def test_delete_not_found(self, service: StoreService, git_root: Path) -> None:
        result = service.delete("pod", make_object())
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail["stage"] == "remove"
        assert commit_count(git_root) == 1


class TestBatch:
    def test_write_many(self, service: StoreService, git_root: Path) -> None:
        result = service.write_many("pod", [make_object(name="a"), make_object(name="b")])
        assert result.ok
        assert result.data["count"] == 2
        assert result.data["committed"] == 2
        assert [i["path"] for i in result.data["items"]] == [
            "default/pod/a.yml",
            "default/pod/b.yml",
        ]
        assert commit_count(git_root) == 3

    def test_partial_failure(self, service: StoreService, git_root: Path) -> None:
        objects = [make_object(name="a"), {"metadata": {}}, make_object(name="b")]
        result = service.write_many("pod", objects)

        assert not result.ok
        assert result.data["count"] == 2
        assert result.error is not None
        assert result.error.code == "MISSING_FIELD"
        assert result.error.message.startswith("1 of 3 objects failed:")
        failure = result.error.detail["failures"][0]
        assert failure["index"] == 1
        assert failure["detail"]["stage"] == "extract"
        assert commit_count(git_root) == 3

    def test_delete_many(self, service: StoreService) -> None:
        service.write_many("pod", [make_object(name="a"), make_object(name="b")])
        result = service.delete_many("pod", [make_object(name="a"), make_object(name="b")])
        assert result.ok
        assert result.op == "delete"
        assert result.data["committed"] == 2

    def test_empty_batch(self, service: StoreService) -> None:
        result = service.write_many("pod", [])
        assert result.ok
        assert result.data["count"] == 0


class TestReplay:
    def _lines(self, *events: tuple[str, dict]) -> list[str]:
        return [json.dumps({"type": t, "object": o}) + "\n" for t, o in events]

    def test_replay_counts(self, service: StoreService, git_root: Path) -> None:
        lines = self._lines(
            ("ADDED", make_object(status="Pending")),
            ("MODIFIED", make_object(status="Running")),
            ("MODIFIED", make_object(status="Running")),
            ("DELETED", make_object()),
            ("BOOKMARK", {}),
        )
        result = service.replay("pod", iter_watch_events(lines))
        assert result.ok
        assert result.op == "watch"
        assert result.data == {
            "group": "pod",
            "written": 2,
            "unchanged": 1,
            "deleted": 1,
            "skipped": 1,
            "failed": 0,
            "total": 5,
        }
        assert result.warnings == []
        assert commit_count(git_root) == 4

    def test_handler_failures_are_warnings(self, service: StoreService) -> None:
        lines = self._lines(("DELETED", make_object()), ("ADDED", make_object()))
        result = service.replay("pod", iter_watch_events(lines))
        assert result.ok
        assert result.data["failed"] == 1
        assert result.data["written"] == 1
        assert result.warnings == ["1 events failed"]

    def test_malformed_stream_fails(self, service: StoreService) -> None:
        lines = [*self._lines(("ADDED", make_object())), "{not json\n"]
        result = service.replay("pod", iter_watch_events(lines), workers=2)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "EVENT_STREAM"
        assert result.data["written"] == 1


class TestHistory:
    def test_history(self, service: StoreService) -> None:
        service.write("pod", make_object(status="Running"))
        service.delete("pod", make_object())
        result = service.history("pod", "default", "web-1")
        assert result.ok
        assert result.data["path"] == "default/pod/web-1.yml"
        assert result.data["count"] == 2
        first = result.data["items"][0]
        assert first["message"] == "Object deleted: default/pod/web-1.yml"
        assert first["author"] == "John Doe <john@doe.org>"
        assert first["timestamp"] == "2024-05-17T12:30:00+00:00"

    def test_history_limit(self, service: StoreService) -> None:
        service.write("pod", make_object(status="Running"))
        service.write("pod", make_object(status="Pending"))
        assert service.history("pod", "default", "web-1", limit=1).data["count"] == 1

    def test_history_unsafe_name(self, service: StoreService) -> None:
        result = service.history("pod", "default", "../x")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNSAFE_PATH"
