"""Sync Gateway: the document/collection store the planner mirrors.

`SyncGateway` is the contract the planner depends on. `LocalSyncGateway` keeps
everything in memory and, when given a path, persists the whole store to one
JSON file after every write.

Every resource carries an integer version, bumped on each write (0 means the
document was never written). Subscribers receive full snapshots, never deltas.
"""
import abc
import asyncio
import copy
import json
import logging
import os
import tempfile
from collections import defaultdict
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, NamedTuple, Optional
from uuid import uuid4

from mealplan.domain.errors import GatewayUnavailableError, ValidationError, VersionConflictError
from mealplan.events.Event_Bus import EventBus
from mealplan.events.event_helpers import publish_store_changed
from mealplan.utilities.constants import COLLECTION_KEYS

logger = logging.getLogger(__name__)


class Snapshot(NamedTuple):
    key: str
    value: Any
    version: int


class SyncGateway(abc.ABC):
    @abc.abstractmethod
    def subscribe(self, resource_key: str) -> AsyncIterator[Snapshot]:
        """Current snapshot first, then one snapshot per change until closed."""

    @abc.abstractmethod
    async def read_once(self, resource_key: str) -> Snapshot:
        """Single read; a missing document has value None and version 0."""

    @abc.abstractmethod
    async def write_document(self, resource_key: str, value: Any) -> int:
        """Replace the whole document and return its new version."""

    @abc.abstractmethod
    async def write_if_version(self, resource_key: str, value: Any, expected_version: int) -> int:
        """Like write_document, but raise VersionConflictError if the stored version moved."""

    @abc.abstractmethod
    async def append_to_collection(self, resource_key: str, entry: Dict[str, Any]) -> str:
        """Add one entry and return its generated id."""


_CLOSED = None  # queue sentinel: the gateway went away


class LocalSyncGateway(SyncGateway):
    def __init__(self, path: Optional[Path] = None, event_bus: Optional[EventBus] = None,
                 collections: Iterable[str] = COLLECTION_KEYS):
        self.path = Path(path) if path else None
        self._event_bus = event_bus  # None publishes on the global bus
        self._collection_keys = set(collections)
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._collections: Dict[str, Dict[str, Any]] = {}
        self._queues: Dict[str, List[asyncio.Queue]] = defaultdict(list)
        self._connected = True
        if self.path is not None:
            self._load()

    # --- Connection state -------------------------------------------------
    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self):
        '''Simulates an outage: pending operations fail and open subscriptions end.'''
        self._connected = False
        for queues in self._queues.values():
            for queue in list(queues):
                queue.put_nowait(_CLOSED)
        logger.warning("Sync gateway disconnected")

    def connect(self):
        self._connected = True
        logger.info("Sync gateway connected")

    def subscriber_count(self, resource_key: str) -> int:
        return len(self._queues.get(resource_key, []))

    def _ensure_connected(self):
        if not self._connected:
            raise GatewayUnavailableError("Sync gateway is not connected")

    def _is_collection(self, key: str) -> bool:
        return key in self._collection_keys or key in self._collections

    # --- Contract -----------------------------------------------------------
    async def subscribe(self, resource_key: str) -> AsyncIterator[Snapshot]:
        self._ensure_connected()
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[resource_key].append(queue)
        logger.debug("Subscribed to %s (%d listener(s))", resource_key, len(self._queues[resource_key]))
        try:
            yield self._snapshot(resource_key)
            while True:
                snapshot = await queue.get()
                if snapshot is _CLOSED:
                    raise GatewayUnavailableError(f"Subscription to {resource_key} lost")
                yield snapshot
        finally:
            self._queues[resource_key].remove(queue)
            logger.debug("Unsubscribed from %s", resource_key)

    async def read_once(self, resource_key: str) -> Snapshot:
        self._ensure_connected()
        return self._snapshot(resource_key)

    async def write_document(self, resource_key: str, value: Any) -> int:
        self._ensure_connected()
        self._ensure_document_key(resource_key)
        return self._commit_document(resource_key, value)

    async def write_if_version(self, resource_key: str, value: Any, expected_version: int) -> int:
        self._ensure_connected()
        self._ensure_document_key(resource_key)
        actual = self._document_version(resource_key)
        if actual != expected_version:
            raise VersionConflictError(resource_key, expected_version, actual)
        return self._commit_document(resource_key, value)

    async def append_to_collection(self, resource_key: str, entry: Dict[str, Any]) -> str:
        self._ensure_connected()
        if resource_key in self._documents:
            raise ValidationError(f"{resource_key} is a document, not a collection")
        self._collection_keys.add(resource_key)
        entry_id = uuid4().hex[:20]
        record = {k: copy.deepcopy(v) for k, v in entry.items() if k != "id"}

        previous = self._collections.get(resource_key)
        current = previous or {"version": 0, "entries": {}}
        updated = {"version": current["version"] + 1,
                   "entries": {**current["entries"], entry_id: record}}
        self._collections[resource_key] = updated
        try:
            self._persist()
        except GatewayUnavailableError:
            self._restore(self._collections, resource_key, previous)
            raise
        self._notify(resource_key)
        return entry_id

    # --- Internals ----------------------------------------------------------
    def _ensure_document_key(self, key: str):
        if self._is_collection(key):
            raise ValidationError(f"{key} is a collection, not a document")

    def _document_version(self, key: str) -> int:
        doc = self._documents.get(key)
        return doc["version"] if doc else 0

    def _commit_document(self, key: str, value: Any) -> int:
        previous = self._documents.get(key)
        version = self._document_version(key) + 1
        self._documents[key] = {"version": version, "value": copy.deepcopy(value)}
        try:
            self._persist()
        except GatewayUnavailableError:
            self._restore(self._documents, key, previous)
            raise
        self._notify(key)
        return version

    @staticmethod
    def _restore(store: Dict[str, Any], key: str, previous):
        if previous is None:
            store.pop(key, None)
        else:
            store[key] = previous

    def _snapshot(self, key: str) -> Snapshot:
        if self._is_collection(key):
            col = self._collections.get(key) or {"version": 0, "entries": {}}
            value = [{"id": entry_id, **copy.deepcopy(record)}
                     for entry_id, record in col["entries"].items()]
            return Snapshot(key, value, col["version"])
        doc = self._documents.get(key)
        if doc is None:
            return Snapshot(key, None, 0)
        return Snapshot(key, copy.deepcopy(doc["value"]), doc["version"])

    def _notify(self, key: str):
        snapshot = self._snapshot(key)
        for queue in list(self._queues.get(key, [])):
            queue.put_nowait(snapshot)
        kind = "collection" if self._is_collection(key) else "document"
        publish_store_changed(key, snapshot.version, kind, bus=self._event_bus)

    def _load(self):
        if not self.path.exists():
            logger.info("Store file %s not found, starting empty", self.path)
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, json.JSONDecodeError) as e:
            raise GatewayUnavailableError(f"Cannot read store file {self.path}: {e}") from e
        self._documents = dict(data.get("documents") or {})
        self._collections = dict(data.get("collections") or {})
        self._collection_keys.update(self._collections)
        logger.info("Loaded %d document(s) and %d collection(s) from %s",
                    len(self._documents), len(self._collections), self.path)

    def _persist(self):
        if self.path is None:
            return
        payload = {"documents": self._documents, "collections": self._collections}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".store_", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    json.dump(payload, tmp, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
        except OSError as e:
            logger.error("Failed to persist store to %s: %s", self.path, e)
            raise GatewayUnavailableError(f"Cannot write store file {self.path}: {e}") from e
