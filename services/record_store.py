"""Record Store - JSON file backed collection with serialized read-modify-write.

Each store owns one collection (a list of records or a keyed dict) and the file
that persists it. The collection is loaded once when the store is created and
kept in memory; every mutation goes through ``mutate()``, which holds the store
lock, lets the caller change the collection and then rewrites the whole file.
"""

import copy
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from threading import Lock
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from services.errors import PersistenceError

logger = logging.getLogger(__name__)

Collection = Union[List[Dict[str, Any]], Dict[str, Dict[str, Any]]]


class RecordStore:
    def __init__(
        self,
        path: str,
        name: Optional[str] = None,
        factory: Callable[[], Collection] = list,
        validator: Optional[Callable[[Dict[str, Any]], bool]] = None,
    ):
        self.path = str(path)
        self.name = name or os.path.splitext(os.path.basename(self.path))[0]
        self._factory = factory
        self._validator = validator
        self._lock = Lock()
        self.records: Collection = self.load()

    def load(self) -> Collection:
        """Load the collection from disk.

        A missing file gives an empty collection. So does an unreadable or
        malformed one, but that case is logged since the old contents are lost
        on the next write. Individual records that are not objects, or that
        fail ``validator``, are dropped with a warning.
        """
        if not os.path.exists(self.path):
            return self._factory()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error loading %s from %s, starting with empty collection: %s", self.name, self.path, e)
            return self._factory()
        expected = type(self._factory())
        if not isinstance(data, expected):
            logger.warning(
                "Unexpected %s content in %s (expected %s), starting with empty collection",
                type(data).__name__, self.path, expected.__name__,
            )
            return self._factory()
        data = self._drop_invalid(data)
        logger.info("Loaded %d %s from %s", len(data), self.name, self.path)
        return data

    def _is_valid(self, record: Any) -> bool:
        return isinstance(record, dict) and (self._validator is None or bool(self._validator(record)))

    def _drop_invalid(self, data: Collection) -> Collection:
        if isinstance(data, dict):
            kept = {k: v for k, v in data.items() if self._is_valid(v)}
        else:
            kept = [r for r in data if self._is_valid(r)]
        dropped = len(data) - len(kept)
        if dropped:
            logger.warning("Dropped %d malformed %s record(s) from %s", dropped, self.name, self.path)
        return kept

    def persist(self, records: Optional[Collection] = None) -> bool:
        """Write the collection to a temp file and atomically swap it into place."""
        records = self.records if records is None else records
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.name}-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving %s to %s: %s", self.name, self.path, e)
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_path)
            raise PersistenceError(f"Failed to save {self.name}") from e

    @contextmanager
    def mutate(self, strict: bool = True) -> Iterator[Collection]:
        """Serialize a read-modify-write cycle on the collection.

        With ``strict`` an exception inside the block or a failed write restores
        the previous in-memory state and is re-raised. Without it the change is kept in memory
        and the failure is only logged.
        """
        with self._lock:
            snapshot = copy.deepcopy(self.records) if strict else None
            try:
                yield self.records
            except Exception:
                if strict:
                    self.records = snapshot
                raise
            try:
                self.persist()
            except PersistenceError:
                if strict:
                    self.records = snapshot
                    raise
                logger.warning("Keeping unsaved %s changes in memory", self.name)

    def find(self, predicate: Callable[[Dict[str, Any]], bool]) -> Optional[Dict[str, Any]]:
        values = self.records.values() if isinstance(self.records, dict) else self.records
        for record in values:
            if predicate(record):
                return record
        return None

    def filter(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        values = self.records.values() if isinstance(self.records, dict) else self.records
        return [record for record in values if predicate(record)]

    def next_id(self) -> int:
        """One past the highest id seen, so ids are never reused even after malformed records were dropped."""
        values = self.records.values() if isinstance(self.records, dict) else self.records
        ids = [r["id"] for r in values if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)]
        return max(ids + [len(self.records)]) + 1

    def __len__(self) -> int:
        return len(self.records)
