# fibergrade/storage/kv_store.py
from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Snapshot = Optional[Any]
Listener = Callable[[Snapshot], None]


class KeyValueStore(Protocol):
    """Remote tree-shaped key-value store with value subscriptions."""

    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        ...

    def set(self, path: str, value: Any) -> None:
        ...


def _split(path: str) -> List[str]:
    return [p for p in path.strip("/").split("/") if p]


def _related(a: List[str], b: List[str]) -> bool:
    """True when one path is a prefix of the other."""
    n = min(len(a), len(b))
    return a[:n] == b[:n]


class InMemoryStore:
    """
    Process-local KeyValueStore. Values live in nested dicts addressed by
    slash-separated paths. A listener receives a deep copy of its subtree once on
    subscribe and again after every set() on, above or below its path.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._root: Dict[str, Any] = copy.deepcopy(data) if data else {}
        self._listeners: List[Tuple[List[str], Listener]] = []
        self._lock = threading.RLock()

    def get(self, path: str) -> Snapshot:
        with self._lock:
            node: Any = self._root
            for part in _split(path):
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
            return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> None:
        parts = _split(path)
        if not parts:
            raise ValueError("Cannot set the store root")
        with self._lock:
            node = self._root
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            if value is None:
                node.pop(parts[-1], None)
            else:
                node[parts[-1]] = copy.deepcopy(value)
            listeners = [(p, cb) for p, cb in self._listeners if _related(p, parts)]
        logger.debug("set %s -> notifying %d listener(s)", path, len(listeners))
        for p, cb in listeners:
            cb(self.get("/".join(p)))

    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        entry = (_split(path), callback)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        callback(self.get(path))
        return unsubscribe
