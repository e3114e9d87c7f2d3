# FILE: teletext/services/ttl_store.py
"""
TTL-keyed stores with lazy expiry

Every entry carries an absolute expiry fixed when it is written. Reading an
expired entry deletes it and reports it as absent; nothing is refreshed by
reads. A periodic sweep may be run to bound store size but is not needed
for correctness.
"""
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class TTLEntry:
    value: Any
    expires_at: float


class TTLStore:
    """Interface shared by every backend"""

    def __init__(self, clock: Clock = time.time):
        self.clock = clock

    def get(self, key: str) -> Optional[Any]:
        entry = self._read(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            logger.debug(f"Entry expired: {key}")
            self._remove(key)
            return None
        return entry.value

    def put(self, key: str, value: Any, ttl: float):
        """Store value until now + ttl seconds (a non-positive ttl deletes)"""
        if ttl <= 0:
            self._remove(key)
            return
        self._write(key, TTLEntry(value=value, expires_at=self.clock() + ttl))

    def delete(self, key: str):
        self._remove(key)

    def expires_at(self, key: str) -> Optional[float]:
        entry = self._read(key)
        if entry is None or self.clock() >= entry.expires_at:
            return None
        return entry.expires_at

    def scan(self) -> Iterator[Tuple[str, Any]]:
        """Live (key, value) pairs; expired entries met on the way are evicted"""
        now = self.clock()
        for key in list(self._keys()):
            entry = self._read(key)
            if entry is None:
                continue
            if now >= entry.expires_at:
                self._remove(key)
                continue
            yield key, entry.value

    def sweep(self) -> int:
        """Evict every expired entry, returning how many were removed"""
        now = self.clock()
        removed = 0
        for key in list(self._keys()):
            entry = self._read(key)
            if entry is not None and now >= entry.expires_at:
                self._remove(key)
                removed += 1
        if removed:
            logger.debug(f"Swept {removed} expired entries")
        return removed

    def clear(self):
        for key in list(self._keys()):
            self._remove(key)

    def __len__(self) -> int:
        return sum(1 for _ in self._keys())

    # Backend primitives
    def _read(self, key: str) -> Optional[TTLEntry]:
        raise NotImplementedError

    def _write(self, key: str, entry: TTLEntry):
        raise NotImplementedError

    def _remove(self, key: str):
        raise NotImplementedError

    def _keys(self) -> Iterator[str]:
        raise NotImplementedError


class InMemoryTTLStore(TTLStore):
    """Process-local store; every operation is a single dict access"""

    def __init__(self, clock: Clock = time.time):
        super().__init__(clock)
        self._entries: Dict[str, TTLEntry] = {}

    def _read(self, key: str) -> Optional[TTLEntry]:
        return self._entries.get(key)

    def _write(self, key: str, entry: TTLEntry):
        self._entries[key] = entry

    def _remove(self, key: str):
        self._entries.pop(key, None)

    def _keys(self) -> Iterator[str]:
        return iter(self._entries)


class FileTTLStore(TTLStore):
    """
    One JSON document per key under a namespace directory.

    Values must be JSON-serializable. Documents are replaced atomically so a
    reader never sees a partially written value.
    """

    def __init__(self, root_dir: str, namespace: str, clock: Clock = time.time):
        super().__init__(clock)
        self.namespace = namespace
        self.store_dir = Path(root_dir) / namespace
        self.store_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode()).hexdigest()
        return self.store_dir / f"{digest}.json"

    def _read(self, key: str) -> Optional[TTLEntry]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable store entry {path.name} in {self.namespace}: {e}")
            return None
        return TTLEntry(value=doc["value"], expires_at=doc["expiresAt"])

    def _write(self, key: str, entry: TTLEntry):
        path = self._path(key)
        doc = {"key": key, "value": entry.value, "expiresAt": entry.expires_at}
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(doc, f)
        tmp_path.replace(path)

    def _remove(self, key: str):
        self._path(key).unlink(missing_ok=True)

    def _keys(self) -> Iterator[str]:
        for path in self.store_dir.glob("*.json"):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    yield json.load(f)["key"]
            except (OSError, json.JSONDecodeError, KeyError):
                continue


def create_store(backend: str, namespace: str, data_dir: str = "./data", clock: Clock = time.time) -> TTLStore:
    """Build a store for one persisted namespace (conversations, quiz_sessions, ...)"""
    if backend == "file":
        return FileTTLStore(data_dir, namespace, clock=clock)
    return InMemoryTTLStore(clock=clock)
