"""Watch-event producer: turn add/update/delete notifications into store calls.

The stream format is what ``kubectl get --watch --output-watch-events -o
json`` prints: concatenated JSON documents of the form
``{"type": "ADDED" | "MODIFIED" | "DELETED", "object": {...}}``. Bare
objects (no ``type``) are treated as ``ADDED``, and ``kind: List``
documents expand to one ``ADDED`` event per item.

Handler failures are logged and counted, never re-raised, so one bad
object does not stop the watch.
"""

from __future__ import annotations

import json
import logging
import threading
import zlib
from collections.abc import Generator, Iterable, Iterator, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from kitctl.errors import EventStreamError, KitError

if TYPE_CHECKING:
    from kitctl.infrastructure.store import VersionedFileStore

logger = logging.getLogger(__name__)

EventType = Literal["ADDED", "MODIFIED", "DELETED", "BOOKMARK", "ERROR"]


class WatchEvent(BaseModel):
    """A single watch notification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: EventType
    obj: dict[str, Any] = Field(default_factory=dict, alias="object")

    @property
    def key(self) -> str:
        """``namespace/name`` of the carried object, or ``""``."""
        metadata = self.obj.get("metadata")
        if not isinstance(metadata, Mapping):
            return ""
        return f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"


class Outcome(StrEnum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Stream decoding
# ---------------------------------------------------------------------------


def _events_from_document(doc: Any) -> list[WatchEvent]:
    if not isinstance(doc, dict):
        msg = f"expected a JSON object, got {type(doc).__name__}"
        raise EventStreamError(msg, stage="decode")

    if "type" in doc and "object" in doc:
        try:
            return [WatchEvent.model_validate(doc)]
        except ValueError as exc:
            raise EventStreamError(
                f"invalid watch event: {exc}", stage="decode"
            ) from exc

    kind = doc.get("kind")
    items = doc.get("items")
    if isinstance(kind, str) and kind.endswith("List") and isinstance(items, list):
        return [WatchEvent(type="ADDED", obj=item) for item in items if isinstance(item, dict)]

    return [WatchEvent(type="ADDED", obj=doc)]


def _malformed(exc: json.JSONDecodeError) -> EventStreamError:
    return EventStreamError(
        f"malformed JSON at line {exc.lineno} column {exc.colno}: {exc.msg}",
        stage="decode",
    )


def _decode_buffer(
    decoder: json.JSONDecoder, buf: str, *, final: bool
) -> Generator[WatchEvent, None, str]:
    """Yield events for every complete document in *buf*; return the rest."""
    while True:
        buf = buf.lstrip()
        if not buf:
            return buf
        try:
            doc, end = decoder.raw_decode(buf)
        except json.JSONDecodeError as exc:
            # JSON strings cannot span lines, so a document cut at a line
            # break only ever fails at the end of the buffer
            if final or exc.pos < len(buf.rstrip()):
                raise _malformed(exc) from exc
            return buf
        buf = buf[end:]
        yield from _events_from_document(doc)


def iter_watch_events(lines: Iterable[str]) -> Iterator[WatchEvent]:
    """Decode concatenated JSON documents from *lines*.

    Works on pretty-printed and line-delimited streams alike. Input is
    consumed line by line so a live ``kubectl`` pipe yields events as
    soon as each document is complete, and a malformed document fails
    as soon as it is seen rather than at end of input.

    Raises:
        EventStreamError: the stream ends inside a document or holds
            something other than JSON objects.
    """
    decoder = json.JSONDecoder()
    buf = ""
    for line in lines:
        buf += line
        # An open object can only complete on a line ending with a closer
        if buf.lstrip().startswith("{") and not line.rstrip().endswith(("}", "]")):
            continue
        buf = yield from _decode_buffer(decoder, buf, final=False)
    yield from _decode_buffer(decoder, buf, final=True)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class ResourceEventHandler:
    """Map add/update/delete notifications for one group onto a store."""

    def __init__(self, store: VersionedFileStore, group: str) -> None:
        self._store = store
        self.group = group

    def on_add(self, obj: Any) -> Outcome:
        return self._write(obj, "add")

    def on_update(self, old: Any, new: Any) -> Outcome:
        return self._write(new, "update")

    def on_delete(self, obj: Any) -> Outcome:
        try:
            self._store.delete(self.group, obj)
        except KitError as exc:
            logger.error("failed to delete: %s", exc, extra={"group": self.group})
            return Outcome.FAILED
        return Outcome.DELETED

    def handle(self, event: WatchEvent) -> Outcome:
        if event.type == "ADDED":
            return self.on_add(event.obj)
        if event.type == "MODIFIED":
            return self.on_update(None, event.obj)
        if event.type == "DELETED":
            return self.on_delete(event.obj)
        if event.type == "ERROR":
            logger.warning("watch error event: %s", event.obj.get("message", event.obj))
        return Outcome.SKIPPED

    def _write(self, obj: Any, action: str) -> Outcome:
        try:
            record = self._store.write(self.group, obj)
        except KitError as exc:
            logger.error("failed to %s: %s", action, exc, extra={"group": self.group})
            return Outcome.FAILED
        return Outcome.WRITTEN if record is not None else Outcome.UNCHANGED


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


@dataclass
class DispatchStats:
    """Outcome counters for one dispatcher run."""

    written: int = 0
    unchanged: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.written + self.unchanged + self.deleted + self.skipped + self.failed

    def record(self, outcome: Outcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def to_dict(self) -> dict[str, int]:
        return {**asdict(self), "total": self.total}


class EventDispatcher:
    """Feed watch events to a handler, inline or on worker threads.

    With ``workers > 1`` events are sharded by object key onto
    single-thread executors: events for one object keep their order,
    events for different objects run concurrently and meet at the store
    lock.
    """

    def __init__(self, handler: ResourceEventHandler, *, workers: int = 1) -> None:
        if workers < 1:
            msg = f"workers must be >= 1, got {workers}"
            raise ValueError(msg)
        self._handler = handler
        self._stats = DispatchStats()
        self._stats_lock = threading.Lock()
        self._futures: list[Future[None]] = []
        self._shards: list[ThreadPoolExecutor] = (
            [
                ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"kitctl-watch-{i}")
                for i in range(workers)
            ]
            if workers > 1
            else []
        )

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    def dispatch(self, event: WatchEvent) -> None:
        if not self._shards:
            self._run(event)
            return
        shard = zlib.crc32(event.key.encode("utf-8")) % len(self._shards)
        self._futures.append(self._shards[shard].submit(self._run, event))

    def dispatch_all(self, events: Iterable[WatchEvent]) -> DispatchStats:
        for event in events:
            self.dispatch(event)
        return self.drain()

    def drain(self) -> DispatchStats:
        """Wait for every in-flight event and return the counters."""
        futures, self._futures = self._futures, []
        for future in futures:
            future.result()
        return self._stats

    def close(self) -> None:
        self.drain()
        for executor in self._shards:
            executor.shutdown(wait=True)
        self._shards = []

    def __enter__(self) -> EventDispatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _run(self, event: WatchEvent) -> None:
        outcome = self._handler.handle(event)
        with self._stats_lock:
            self._stats.record(outcome)
