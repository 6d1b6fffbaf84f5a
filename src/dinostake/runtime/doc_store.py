from __future__ import annotations

"""Document store contract + in-memory implementation.

Contract (shared with SqliteDocumentStore):
  - get(key)             -> dict copy, or None if the document does not exist
  - put(key, fields)     -> shallow-merge fields into the document (create if absent)
  - put_many({k: f})     -> several merges committed as one unit (all or nothing)
  - subscribe(key, cb)   -> cb(initial snapshot), then cb(full doc) after every commit;
                            returns an unsubscribe callable

Callbacks run after the commit, outside any store lock.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

Json = Dict[str, Any]
Subscriber = Callable[[Optional[Json]], None]

log = logging.getLogger("dinostake.store")


def user_doc_key(user_id: str, doc: str) -> str:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("user_doc_key requires a non-empty user id")
    if "/" in uid:
        raise ValueError("user id must not contain '/'")
    return f"users/{uid}/{doc}"


class DocumentStore:
    """Base class: subscriber bookkeeping; subclasses implement storage."""

    def __init__(self) -> None:
        self._sub_lock = threading.Lock()
        self._subs: Dict[str, List[Subscriber]] = {}

    # ---- storage (subclass) ----

    def get(self, key: str) -> Optional[Json]:
        raise NotImplementedError

    def _merge_many(self, updates: Mapping[str, Json]) -> Dict[str, Json]:
        """Apply all merges atomically; return the full post-commit documents."""
        raise NotImplementedError

    # ---- public API ----

    def put(self, key: str, fields: Json) -> Json:
        return self.put_many({key: fields})[key]

    def put_many(self, updates: Mapping[str, Json]) -> Dict[str, Json]:
        for k, v in updates.items():
            if not isinstance(k, str) or not k.strip():
                raise ValueError("document key must be a non-empty string")
            if not isinstance(v, dict):
                raise ValueError(f"document fields for {k!r} must be a dict")
        if not updates:
            return {}
        committed = self._merge_many(updates)
        self._notify(committed)
        return committed

    def subscribe(self, key: str, callback: Subscriber) -> Callable[[], None]:
        with self._sub_lock:
            self._subs.setdefault(key, []).append(callback)

        self._safe_call(key, callback, self.get(key))

        def _unsubscribe() -> None:
            with self._sub_lock:
                subs = self._subs.get(key) or []
                if callback in subs:
                    subs.remove(callback)
                if not subs:
                    self._subs.pop(key, None)

        return _unsubscribe

    def _notify(self, committed: Mapping[str, Json]) -> None:
        pending: List[Tuple[str, Subscriber, Json]] = []
        with self._sub_lock:
            for key, doc in committed.items():
                for cb in list(self._subs.get(key) or []):
                    pending.append((key, cb, doc))
        for key, cb, doc in pending:
            self._safe_call(key, cb, copy.deepcopy(doc))

    @staticmethod
    def _safe_call(key: str, cb: Subscriber, doc: Optional[Json]) -> None:
        try:
            cb(doc)
        except Exception:
            log.exception("document subscriber failed key=%s", key)


class MemoryDocumentStore(DocumentStore):
    """Process-local store for tests and dev mode."""

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._docs: Dict[str, Json] = {}

    def get(self, key: str) -> Optional[Json]:
        with self._lock:
            d = self._docs.get(key)
            return copy.deepcopy(d) if d is not None else None

    def _merge_many(self, updates: Mapping[str, Json]) -> Dict[str, Json]:
        with self._lock:
            staged: Dict[str, Json] = {}
            for key, fields in updates.items():
                base = staged.get(key) or copy.deepcopy(self._docs.get(key) or {})
                base.update(copy.deepcopy(fields))
                staged[key] = base
            self._docs.update(staged)
            return copy.deepcopy(staged)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._docs.keys())


__all__ = ["DocumentStore", "MemoryDocumentStore", "user_doc_key"]
