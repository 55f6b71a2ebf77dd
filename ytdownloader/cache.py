import threading
import time


class TTLCache:
    """In-memory map whose entries expire ``ttl`` seconds after insertion.

    Expired entries are dropped lazily on ``get`` and in bulk by ``sweep``,
    which the maintenance thread calls periodically.
    """

    def __init__(self, ttl, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._clock() - inserted_at < self.ttl:
                return value
            del self._entries[key]
            return None

    def set(self, key, value):
        with self._lock:
            self._entries[key] = (value, self._clock())

    def sweep(self):
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, inserted_at) in self._entries.items()
                       if now - inserted_at > self.ttl]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        return self.get(key) is not None
