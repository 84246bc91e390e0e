"""
Per-player recompute locks.

Backed by a diskcache store so recomputes for one player are serialised
across threads and across processes sharing the same lock directory.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from diskcache import Cache, Lock
from loguru import logger

DEFAULT_LOCK_DIR = Path("data/locks")


class PlayerLockTimeout(TimeoutError):
    """Raised when a player lock cannot be acquired in time."""


class PlayerLocks:
    """Advisory lock per player id."""

    KEY_PREFIX = "recalculate:"
    LOCK_EXPIRE = 600  # seconds; frees the key if a holder dies
    POLL_INTERVAL = 0.01

    def __init__(self, lock_dir: str | Path = DEFAULT_LOCK_DIR) -> None:
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        self.cache = Cache(str(self.lock_dir))
        # diskcache locks are not re-entrant; guard against same-thread nesting
        self._held = threading.local()

    def _key(self, player_id: str) -> str:
        return f"{self.KEY_PREFIX}{player_id}"

    @contextmanager
    def hold(self, player_id: str, timeout: float | None = None) -> Generator[None, None, None]:
        """
        Hold the lock for ``player_id``.

        Args:
            player_id: Player identifier
            timeout: Seconds to wait before PlayerLockTimeout; wait forever if None
        """
        held: set[str] = getattr(self._held, "keys", None) or set()
        self._held.keys = held
        key = self._key(player_id)
        if key in held:
            yield
            return

        lock = Lock(self.cache, key, expire=self.LOCK_EXPIRE)
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.cache.add(key, None, expire=self.LOCK_EXPIRE, retry=True):
            if deadline is not None and time.monotonic() >= deadline:
                raise PlayerLockTimeout(f"Timed out waiting for lock {key}")
            time.sleep(self.POLL_INTERVAL)
        logger.debug(f"Acquired {key}")
        held.add(key)
        try:
            yield
        finally:
            held.discard(key)
            lock.release()
            logger.debug(f"Released {key}")

    def is_locked(self, player_id: str) -> bool:
        return Lock(self.cache, self._key(player_id)).locked()

    def close(self) -> None:
        self.cache.close()
