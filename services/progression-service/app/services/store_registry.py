"""Per-user ProgressionStore cache shared by all API requests"""
from collections import OrderedDict
from functools import lru_cache
from typing import Dict, Optional
import logging
import threading

from app.config import get_settings
from app.services.progression_repository import ProgressionRepository
from app.services.progression_service import Clock, ProgressionStore, new_player_state, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class StoreRegistry:
    """
    Keeps one ProgressionStore per user id so concurrent requests for the
    same player go through the same lock.

    Stores are loaded from the repository on first access (or created with
    the initial state) and write back to it after every commit. At most
    `max_stores` are cached; the least recently used one is dropped first
    and reloads from storage on its next access.

    A failed read propagates and caches nothing, so a storage hiccup never
    turns into a blank state that overwrites the stored one.
    """

    def __init__(
        self,
        repository: Optional[ProgressionRepository] = None,
        clock: Clock = utc_now,
        max_stores: Optional[int] = None,
    ):
        self.repository = repository or ProgressionRepository()
        self.clock = clock
        self.max_stores = max_stores or settings.STORE_CACHE_SIZE
        self._stores: "OrderedDict[str, ProgressionStore]" = OrderedDict()
        self._lock = threading.Lock()
        self._load_locks: Dict[str, threading.Lock] = {}

    def get_store(self, user_id: str) -> ProgressionStore:
        store = self._cached(user_id)
        if store is not None:
            return store

        # Only loads of the same user wait on each other
        with self._lock:
            load_lock = self._load_locks.setdefault(user_id, threading.Lock())

        with load_lock:
            store = self._cached(user_id)
            if store is not None:
                return store

            try:
                store = self._load(user_id)
            except Exception:
                with self._lock:
                    self._load_locks.pop(user_id, None)
                raise

            with self._lock:
                self._stores[user_id] = store
                self._load_locks.pop(user_id, None)
                self._evict_overflow()
            return store

    def _cached(self, user_id: str) -> Optional[ProgressionStore]:
        with self._lock:
            store = self._stores.get(user_id)
            if store is not None:
                self._stores.move_to_end(user_id)
            return store

    def _evict_overflow(self) -> None:
        while len(self._stores) > self.max_stores:
            evicted, _ = self._stores.popitem(last=False)
            logger.debug(f"Evicted cached progression for user {evicted}")

    def _load(self, user_id: str) -> ProgressionStore:
        state = self.repository.get_state(user_id)
        if state is None:
            logger.info(f"Creating initial progression for user {user_id}")
            state = new_player_state()

        return ProgressionStore(
            state=state,
            clock=self.clock,
            on_commit=lambda snapshot: self._persist(user_id, snapshot),
            player_id=user_id,
        )

    def _persist(self, user_id: str, snapshot) -> None:
        if not self.repository.save_state(user_id, snapshot):
            logger.warning(f"Progression for user {user_id} not persisted, kept in memory")

    def evict(self, user_id: str) -> None:
        """Drop the cached store; next access reloads from storage."""
        with self._lock:
            self._stores.pop(user_id, None)

    def __contains__(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)


@lru_cache()
def get_registry() -> StoreRegistry:
    """Returns the process-wide registry (singleton)"""
    return StoreRegistry()
