from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for cached singleton resolution.

    Use these values for the container-level ``lock_mode`` default or per
    entry. Resolution is synchronous, so only thread locks are offered.
    """

    THREAD = "thread"
    """Guard singleton caches with a re-entrant ``threading.RLock``."""

    NONE = "none"
    """Disable locking around singleton cache reads/writes.

    Only safe when every resolution happens on a single thread.
    """
