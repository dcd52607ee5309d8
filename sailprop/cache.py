import logging
import time
from collections import OrderedDict
from typing import Callable, Hashable, Optional

from .config import CacheConfig
from .sail import SailConfiguration

logger = logging.getLogger(__name__)


class TrajectoryCache:
    """
    Caller-owned memo of recent predictions.

    Entries expire after ttl_seconds, the least recently used entry is evicted
    beyond max_entries, and every entry is dropped as soon as a sail
    configuration different from the last one seen is reported.

    Args:
        config: TTL, size and time bucket settings
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(self, config: Optional[CacheConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or CacheConfig()
        self._clock = clock
        self._entries: 'OrderedDict[Hashable, tuple]' = OrderedDict()
        self._sail: Optional[SailConfiguration] = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def bucket(self, t: float) -> int:
        """Index of the time bucket containing Julian date t."""
        return round(t / self.config.time_bucket_days)

    def get(self, key: Hashable):
        """Cached value for key, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at > self.config.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def put(self, key: Hashable, value):
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.config.max_entries:
            self._entries.popitem(last=False)

    def get_or_compute(self, key: Hashable, compute: Callable[[], object]):
        value = self.get(key)
        if value is not None:
            self.hits += 1
            return value
        self.misses += 1
        logger.debug("Trajectory cache miss (%d entries)", len(self._entries))
        value = compute()
        self.put(key, value)
        return value

    def invalidate(self):
        """Drop every entry."""
        self._entries.clear()

    def notify_sail_changed(self, sail: SailConfiguration) -> bool:
        """
        Report the current sail configuration.

        Returns:
            True if it differs from the previous one, in which case the cache
            was cleared.
        """
        changed = self._sail is not None and sail != self._sail
        self._sail = sail
        if changed:
            logger.debug("Sail configuration changed, invalidating %d cached trajectories",
                         len(self._entries))
            self.invalidate()
        return changed
