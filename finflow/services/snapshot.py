import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"
BUDGETS = "budgets"


@dataclass
class Snapshot:
    transactions: dict = field(default_factory=dict)
    budgets: dict = field(default_factory=dict)

    def rows(self, kind: str) -> list:
        return list(getattr(self, kind).values())


@dataclass
class _UserEntry:
    generation: int = 0
    snapshot: Optional[Snapshot] = None


class SnapshotCache:
    """Per-user snapshot of transactions and budgets.

    A fetch is tagged with the generation current when it started; it is
    stored only if no other fetch or mutation has bumped the generation since.
    Mutations merge their returned record into the stored snapshot instead of
    forcing a full reload.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SnapshotCache, cls).__new__(cls)
            cls._instance._entries = {}
        return cls._instance

    def _entry(self, user_id: int) -> _UserEntry:
        return self._entries.setdefault(user_id, _UserEntry())

    def get(self, user_id: int) -> Optional[Snapshot]:
        entry = self._entries.get(user_id)
        return entry.snapshot if entry else None

    def begin_fetch(self, user_id: int) -> int:
        entry = self._entry(user_id)
        entry.generation += 1
        return entry.generation

    def complete_fetch(self, user_id: int, token: int, transactions: list, budgets: list) -> bool:
        entry = self._entry(user_id)
        if token != entry.generation:
            logger.debug(f"Discarding stale snapshot for user {user_id} (token {token}, latest {entry.generation})")
            return False
        entry.snapshot = Snapshot(
            transactions={t.id: t for t in transactions},
            budgets={b.id: b for b in budgets}
        )
        return True

    def upsert(self, user_id: int, kind: str, record):
        entry = self._entry(user_id)
        entry.generation += 1
        if entry.snapshot is not None:
            getattr(entry.snapshot, kind)[record.id] = record

    def remove(self, user_id: int, kind: str, record_id: int):
        entry = self._entry(user_id)
        entry.generation += 1
        if entry.snapshot is not None:
            getattr(entry.snapshot, kind).pop(record_id, None)

    def invalidate(self, user_id: int):
        entry = self._entry(user_id)
        entry.generation += 1
        entry.snapshot = None

    def discard(self, user_id: int):
        # A fetch still in flight gets a fresh entry and its token no longer matches
        self._entries.pop(user_id, None)

    def clear(self):
        self._entries.clear()


snapshot_cache = SnapshotCache()
