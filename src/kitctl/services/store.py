"""StoreService: write, delete, replay, and history over the file store.

Every public method returns a :class:`ServiceResult`; store exceptions
are converted at this boundary, keeping the stage that failed in
``error.detail``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from kitctl.errors import KitError
from kitctl.infrastructure.coalescer import CommitRecord
from kitctl.services.events import EventDispatcher, ResourceEventHandler, WatchEvent
from kitctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from kitctl.infrastructure.store import VersionedFileStore

logger = logging.getLogger(__name__)


def _item(path: str, record: CommitRecord | None) -> dict[str, Any]:
    item: dict[str, Any] = {"path": path, "committed": record is not None}
    if record is not None:
        item["revision"] = record.revision
        item["message"] = record.message
    return item


class StoreService:
    """Service facade over :class:`~kitctl.infrastructure.store.VersionedFileStore`."""

    def __init__(self, store: VersionedFileStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Single-object operations
    # ------------------------------------------------------------------

    def write(self, group: str, obj: Any) -> ServiceResult:
        op = "write"
        try:
            path = self._store.paths_for(group, obj).file.relative
            record = self._store.write(group, obj)
        except KitError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_item(path, record))

    def delete(self, group: str, obj: Any) -> ServiceResult:
        op = "delete"
        try:
            path = self._store.paths_for(group, obj).file.relative
            record = self._store.delete(group, obj)
        except KitError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_item(path, record))

    # ------------------------------------------------------------------
    # Batch operations
    # ------------------------------------------------------------------

    def write_many(self, group: str, objects: Iterable[Any]) -> ServiceResult:
        """Write each object in turn; one commit per changed object."""
        return self._batch("write", group, objects, self._store.write)

    def delete_many(self, group: str, objects: Iterable[Any]) -> ServiceResult:
        """Delete each object in turn; one commit per removed file."""
        return self._batch("delete", group, objects, self._store.delete)

    def _batch(
        self,
        op: str,
        group: str,
        objects: Iterable[Any],
        action: Callable[[str, Any], CommitRecord | None],
    ) -> ServiceResult:
        items: list[dict[str, Any]] = []
        failures: list[dict[str, Any]] = []

        for index, obj in enumerate(objects):
            try:
                path = self._store.paths_for(group, obj).file.relative
                record = action(group, obj)
            except KitError as exc:
                logger.error("failed to %s object #%d: %s", op, index, exc)
                failures.append(
                    {"index": index, **ServiceError.from_exception(exc).model_dump()}
                )
                continue
            items.append(_item(path, record))

        data: dict[str, Any] = {
            "group": group,
            "items": items,
            "count": len(items),
            "committed": sum(1 for i in items if i["committed"]),
        }
        if not failures:
            return ServiceResult(ok=True, op=op, data=data)

        first = failures[0]
        total = len(items) + len(failures)
        return ServiceResult(
            ok=False,
            op=op,
            data=data,
            error=ServiceError(
                code=first["code"],
                message=f"{len(failures)} of {total} objects failed: {first['message']}",
                detail={"failures": failures},
            ),
        )

    # ------------------------------------------------------------------
    # Watch replay
    # ------------------------------------------------------------------

    def replay(
        self,
        group: str,
        events: Iterable[WatchEvent],
        *,
        workers: int = 1,
    ) -> ServiceResult:
        """Dispatch a stream of watch events for *group*.

        Individual handler failures are counted, not fatal. A malformed
        stream stops the replay and fails the result, keeping the
        counters of everything processed before it.
        """
        op = "watch"
        handler = ResourceEventHandler(self._store, group)
        with EventDispatcher(handler, workers=workers) as dispatcher:
            try:
                for event in events:
                    dispatcher.dispatch(event)
            except KitError as exc:
                stats = dispatcher.drain()
                return ServiceResult.failure(op, exc, group=group, **stats.to_dict())
            stats = dispatcher.drain()

        result_data: dict[str, Any] = {"group": group, **stats.to_dict()}
        warnings = [f"{stats.failed} events failed"] if stats.failed else []
        return ServiceResult(ok=True, op=op, data=result_data, warnings=warnings)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history(
        self,
        group: str,
        namespace: str,
        name: str,
        *,
        limit: int | None = None,
    ) -> ServiceResult:
        """List the commits that touched one object's file, newest first."""
        op = "history"
        identity = {"metadata": {"namespace": namespace, "name": name}}
        try:
            paths = self._store.paths_for(group, identity)
            entries = self._store.history(group, identity, limit=limit)
        except KitError as exc:
            return ServiceResult.failure(op, exc)

        items = [
            {
                "revision": e.revision,
                "author": f"{e.author_name} <{e.author_email}>",
                "timestamp": e.timestamp.isoformat(),
                "message": e.message,
            }
            for e in entries
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": paths.file.relative, "items": items, "count": len(items)},
        )
