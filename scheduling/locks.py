from contextlib import contextmanager
from threading import Lock


class KeyedLocks:
    """
    One mutex per key, e.g. ("grid", court_id, date) or ("booking", booking_id).
    Writers on the same key run one at a time; different keys never wait on each other.
    Entries are dropped once nobody holds or waits for them.
    """

    def __init__(self):
        self._guard = Lock()
        self._locks = {}
        self._waiters = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            lock = self._locks.setdefault(key, Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)
