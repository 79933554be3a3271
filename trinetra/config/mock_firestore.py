"""
In-process Firestore stand-in for local development and tests.

Implements the subset of the google-cloud-firestore client surface the
services use: collection/document references, set/get/update/delete,
equality filters, ordering, limits, streaming, SERVER_TIMESTAMP and
collection snapshot listeners. When a path is given, the data is persisted
to that JSON file after every write.
"""

import copy
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import NotFound

logger = logging.getLogger(__name__)

_DATETIME_KEY = "__datetime__"


class ChangeType(Enum):
    ADDED = 1
    REMOVED = 2
    MODIFIED = 3


class DocumentChange:
    def __init__(self, change_type: ChangeType, document: "DocumentSnapshot"):
        self.type = change_type
        self.document = document


class DocumentSnapshot:
    def __init__(self, reference: "DocumentReference", data: Optional[Dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field: str) -> Any:
        return (self._data or {}).get(field)


class Watch:
    """Handle returned by on_snapshot; mirrors google.cloud.firestore_v1.watch.Watch."""

    def __init__(self, store: "MockFirestore", collection: str, callback: Callable):
        self._store = store
        self.collection = collection
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        self.active = False
        self._store._remove_watch(self)


class Query:
    def __init__(self, store: "MockFirestore", collection: str):
        self._store = store
        self._collection = collection
        self._filters: List[tuple] = []
        self._orders: List[tuple] = []
        self._limit: Optional[int] = None

    def _copy(self) -> "Query":
        query = Query(self._store, self._collection)
        query._filters = list(self._filters)
        query._orders = list(self._orders)
        query._limit = self._limit
        return query

    def where(self, field_path: str, op_string: str, value: Any) -> "Query":
        if op_string not in ("==", "in"):
            raise ValueError(f"Mock Firestore does not support operator {op_string!r}")
        query = self._copy()
        query._filters.append((field_path, op_string, value))
        return query

    def order_by(self, field_path: str, direction: str = "ASCENDING") -> "Query":
        query = self._copy()
        query._orders.append((field_path, direction))
        return query

    def limit(self, count: int) -> "Query":
        query = self._copy()
        query._limit = count
        return query

    def _matches(self, data: Dict) -> bool:
        for field_path, op_string, value in self._filters:
            if op_string == "==" and data.get(field_path) != value:
                return False
            if op_string == "in" and data.get(field_path) not in value:
                return False
        return True

    def stream(self):
        collection = self._store._collection_data(self._collection)
        rows = [(doc_id, data) for doc_id, data in collection.items() if self._matches(data)]

        # Stable multi-key sort: apply the least significant key first
        for field_path, direction in reversed(self._orders):
            present = [row for row in rows if row[1].get(field_path) is not None]
            missing = [row for row in rows if row[1].get(field_path) is None]
            present.sort(key=lambda row: row[1][field_path], reverse=(direction == "DESCENDING"))
            rows = present + missing

        if self._limit is not None:
            rows = rows[:self._limit]

        for doc_id, data in rows:
            ref = DocumentReference(self._store, self._collection, doc_id)
            yield DocumentSnapshot(ref, copy.deepcopy(data))

    def get(self) -> List[DocumentSnapshot]:
        return list(self.stream())


class CollectionReference(Query):
    def __init__(self, store: "MockFirestore", name: str):
        super().__init__(store, name)
        self.id = name

    def document(self, document_id: Optional[str] = None) -> "DocumentReference":
        return DocumentReference(self._store, self._collection, document_id or uuid.uuid4().hex[:20])

    def add(self, data: Dict):
        ref = self.document()
        ref.set(data)
        return None, ref

    def on_snapshot(self, callback: Callable) -> Watch:
        return self._store._add_watch(self._collection, callback)


class DocumentReference:
    def __init__(self, store: "MockFirestore", collection: str, document_id: str):
        self._store = store
        self._collection = collection
        self.id = document_id

    @property
    def path(self) -> str:
        return f"{self._collection}/{self.id}"

    def get(self) -> DocumentSnapshot:
        data = self._store._collection_data(self._collection).get(self.id)
        return DocumentSnapshot(self, copy.deepcopy(data))

    def set(self, data: Dict, merge: bool = False):
        self._store._write(self._collection, self.id, data, merge=merge)

    def update(self, data: Dict):
        if self.id not in self._store._collection_data(self._collection):
            raise NotFound(f"No document to update: {self.path}")
        self._store._write(self._collection, self.id, data, merge=True)

    def delete(self):
        self._store._delete(self._collection, self.id)


class MockFirestore:
    """Thread-safe in-memory document store with optional JSON persistence."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or None
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, Dict]] = {}
        self._watches: List[Watch] = []
        self._last_timestamp: Optional[datetime] = None
        if self.path and os.path.exists(self.path):
            self._load()

    # Public client surface

    def collection(self, name: str) -> CollectionReference:
        return CollectionReference(self, name)

    def collections(self) -> List[CollectionReference]:
        with self._lock:
            return [CollectionReference(self, name) for name in self._data]

    # Internals

    def _collection_data(self, name: str) -> Dict[str, Dict]:
        with self._lock:
            return dict(self._data.get(name, {}))

    def _server_timestamp(self) -> datetime:
        # Strictly increasing so ordering by creation time is deterministic
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve_sentinels(self, data: Dict) -> Dict:
        resolved = {}
        for key, value in data.items():
            if value is firestore.SERVER_TIMESTAMP:
                resolved[key] = self._server_timestamp()
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _write(self, collection: str, doc_id: str, data: Dict, merge: bool):
        with self._lock:
            docs = self._data.setdefault(collection, {})
            existed = doc_id in docs
            resolved = self._resolve_sentinels(data)
            if merge and existed:
                docs[doc_id].update(resolved)
            else:
                docs[doc_id] = resolved
            snapshot_data = copy.deepcopy(docs[doc_id])
            self._save()
        change = ChangeType.MODIFIED if existed else ChangeType.ADDED
        self._notify(collection, doc_id, change, snapshot_data)

    def _delete(self, collection: str, doc_id: str):
        with self._lock:
            removed = self._data.get(collection, {}).pop(doc_id, None)
            self._save()
        if removed is not None:
            self._notify(collection, doc_id, ChangeType.REMOVED, removed)

    def _add_watch(self, collection: str, callback: Callable) -> Watch:
        watch = Watch(self, collection, callback)
        with self._lock:
            self._watches.append(watch)
            docs = self._collection_data(collection)
        snapshots = [
            DocumentSnapshot(DocumentReference(self, collection, doc_id), copy.deepcopy(data))
            for doc_id, data in docs.items()
        ]
        # Initial snapshot: every existing document reported as ADDED
        changes = [DocumentChange(ChangeType.ADDED, snap) for snap in snapshots]
        self._invoke(watch, snapshots, changes)
        return watch

    def _remove_watch(self, watch: Watch):
        with self._lock:
            if watch in self._watches:
                self._watches.remove(watch)

    def _notify(self, collection: str, doc_id: str, change_type: ChangeType, data: Dict):
        with self._lock:
            watches = [w for w in self._watches if w.collection == collection and w.active]
        if not watches:
            return
        snapshot = DocumentSnapshot(DocumentReference(self, collection, doc_id), data)
        for watch in watches:
            self._invoke(watch, [snapshot], [DocumentChange(change_type, snapshot)])

    def _invoke(self, watch: Watch, snapshots: List[DocumentSnapshot], changes: List[DocumentChange]):
        try:
            watch.callback(snapshots, changes, datetime.now(timezone.utc))
        except Exception as e:
            logger.error(f"Mock snapshot listener failed: {e}", exc_info=True)

    def _load(self):
        with open(self.path, "r", encoding="utf-8") as f:
            self._data = json.load(f, object_hook=_decode_datetime)
        logger.info(f"Mock Firestore loaded from {self.path}")

    def _save(self):
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, default=_encode_datetime, indent=2)


def _encode_datetime(value: Any):
    if isinstance(value, datetime):
        return {_DATETIME_KEY: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_datetime(obj: Dict):
    if len(obj) == 1 and _DATETIME_KEY in obj:
        return datetime.fromisoformat(obj[_DATETIME_KEY])
    return obj


_mock_db: Optional[MockFirestore] = None


def get_mock_db(path: Optional[str] = None) -> MockFirestore:
    """Get or create the process-wide mock database."""
    global _mock_db
    if _mock_db is None:
        _mock_db = MockFirestore(path)
    return _mock_db
