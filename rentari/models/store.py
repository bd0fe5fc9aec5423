import atexit
import copy
import logging
import os
import pickle
import threading
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

from rentari.utils import filters
from rentari.utils.constants import CODE_TTL_SECONDS, HOLD_MINUTES

logger = logging.getLogger(__name__)

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"

COLLECTIONS = ("accounts", "vehicles", "pending", "budgets", "codes")

# collection -> (timestamp field, seconds); documents older than this vanish
TTL_INDEXES = {
    "pending": ("created_at", HOLD_MINUTES * 60),
    "codes": ("created_at", CODE_TTL_SECONDS),
}


class Store:
    """
    Document store with one dict per collection, persisted to a pickle file.

    Every public method runs under a single re-entrant lock, so a read-modify-write
    on one document is atomic. Nothing spans collections. Reads hand out copies;
    the only way to change a document is through the update methods.
    """

    _inst = None
    _inst_lock = threading.Lock()
    _atexit_registered = False

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path or DEFAULT_DATA_PATH)
        self.collections: dict[str, dict[str, dict]] = {name: {} for name in COLLECTIONS}
        self._rw = threading.RLock()

        logger.info("[Store] Using file: %s", self.path)
        self._load()

        # Automatically save on exit (skipped in test environments)
        if not Store._atexit_registered and os.getenv("APP_ENV") != "test":
            atexit.register(self.save)
            Store._atexit_registered = True

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, path: str | os.PathLike | None = None):
        """Return the global singleton instance of Store."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = Store(path or os.getenv("DATA_PATH") or DEFAULT_DATA_PATH)
        return cls._inst

    @classmethod
    def reset(cls, path: str | os.PathLike | None = None):
        """Replace the singleton with a fresh store (app factory and tests)."""
        with cls._inst_lock:
            cls._inst = Store(path or DEFAULT_DATA_PATH)
        return cls._inst

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            logger.warning("[Store] Load failed (%s); starting empty.", e)
            return

        if isinstance(data, dict) and set(data) <= set(COLLECTIONS):
            for name in COLLECTIONS:
                self.collections[name] = data.get(name, {}) or {}
            logger.info(
                "[Store] Loaded: %s",
                ", ".join(f"{n}={len(self.collections[n])}" for n in COLLECTIONS),
            )
        else:
            # Handle incompatible data format: backup the old file and start empty
            bak = self.path + ".bak"
            try:
                os.replace(self.path, bak)
                logger.warning(
                    "[Store] Incompatible store (%s); backed up to %s. Starting empty.",
                    type(data).__name__, bak,
                )
            except OSError as e:
                logger.error("[Store] Backup failed: %s", e)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "wb") as f:
            pickle.dump(self.collections, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def save(self):
        """Thread-safe save method."""
        with self._rw:
            logger.debug("[Store] Saving to %s ...", self.path)
            self._dump()

    # ---------- TTL ----------
    def _expire(self, name: str) -> int:
        """Drop documents past their TTL; a no-op for collections without one."""
        if name not in TTL_INDEXES:
            return 0
        field, seconds = TTL_INDEXES[name]
        cutoff = filters.utcnow() - timedelta(seconds=seconds)
        coll = self.collections[name]
        stale = [k for k, d in coll.items() if d.get(field) is not None and d[field] <= cutoff]
        for k in stale:
            del coll[k]
        if stale:
            logger.debug("[Store] Expired %d document(s) from %s", len(stale), name)
            self._dump()
        return len(stale)

    def _coll(self, name: str) -> dict[str, dict]:
        if name not in self.collections:
            raise KeyError(f"Unknown collection '{name}'")
        self._expire(name)
        return self.collections[name]

    @staticmethod
    def _matches(doc: dict, match: dict) -> bool:
        return all(doc.get(k) == v for k, v in match.items())

    # ---------- Queries ----------
    def insert(self, name: str, doc: dict, id_field: str) -> str:
        """Insert a copy of `doc`, assigning a UUID under `id_field`; return the id."""
        with self._rw:
            coll = self._coll(name)
            doc_id = str(uuid.uuid4())
            stored = copy.deepcopy(doc)
            stored[id_field] = doc_id
            coll[doc_id] = stored
            self._dump()
            return doc_id

    def get(self, name: str, doc_id: str) -> dict | None:
        with self._rw:
            doc = self._coll(name).get(str(doc_id))
            return copy.deepcopy(doc) if doc is not None else None

    def find_one(self, name: str, **match) -> dict | None:
        with self._rw:
            for doc in self._coll(name).values():
                if self._matches(doc, match):
                    return copy.deepcopy(doc)
            return None

    def find(self, name: str, where: Optional[Callable[[dict], bool]] = None, **match) -> list[dict]:
        """All documents equal on `match` and accepted by `where`, in insertion order."""
        with self._rw:
            return [
                copy.deepcopy(d) for d in self._coll(name).values()
                if self._matches(d, match) and (where is None or where(d))
            ]

    def update_one(self, name: str, match: dict, updates: dict | None = None,
                   mutate: Optional[Callable[[dict], None]] = None) -> dict | None:
        """
        Atomically update the first document equal on `match`.
        `updates` is applied as a field overwrite, then `mutate(doc)` runs in place.
        Returns the updated document, or None if nothing matched.
        """
        with self._rw:
            for doc in self._coll(name).values():
                if not self._matches(doc, match):
                    continue
                if updates:
                    doc.update(updates)
                if mutate is not None:
                    mutate(doc)
                self._dump()
                return copy.deepcopy(doc)
            return None

    def update_many(self, name: str, where: Callable[[dict], bool], updates: dict) -> int:
        """Overwrite `updates` on every document accepted by `where`; return the count."""
        with self._rw:
            hits = [d for d in self._coll(name).values() if where(d)]
            for doc in hits:
                doc.update(updates)
            if hits:
                self._dump()
            return len(hits)

    def delete_one(self, name: str, **match) -> dict | None:
        """Remove the first document equal on `match`; return it or None."""
        with self._rw:
            coll = self._coll(name)
            for key, doc in coll.items():
                if self._matches(doc, match):
                    del coll[key]
                    self._dump()
                    return doc
            return None

    def count(self, name: str) -> int:
        with self._rw:
            return len(self._coll(name))

    def clear(self):
        with self._rw:
            for name in COLLECTIONS:
                self.collections[name].clear()
            self._dump()
