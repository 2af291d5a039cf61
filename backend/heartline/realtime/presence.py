# heartline/realtime/presence.py
"""
Process-wide presence registry: user id -> channel name of the live websocket.

One connection per user. A second connection for the same user displaces the
first one; the displaced socket stays open but stops receiving user-addressed
events. Entries are removed on disconnect, and only by the connection that
currently owns them.

Read from the event loop (gateway consumers) and from sync HTTP views running
in the thread pool, hence the lock.
"""
import logging
import threading
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class PresenceRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._handles: Dict[int, str] = {}

    def set_online(self, user_id: int, handle: str) -> Optional[str]:
        """Register `handle` for `user_id`. Returns the displaced handle, if any."""
        with self._lock:
            previous = self._handles.get(user_id)
            self._handles[user_id] = handle
        if previous and previous != handle:
            logger.info("user %s reconnected, displacing %s", user_id, previous)
        return previous

    def clear(self, user_id: int, handle: Optional[str] = None) -> bool:
        """
        Remove the entry for `user_id`. With `handle`, only when it is still the
        registered one. Returns True if something was removed.
        """
        with self._lock:
            current = self._handles.get(user_id)
            if current is None:
                return False
            if handle is not None and current != handle:
                return False
            del self._handles[user_id]
        return True

    def lookup(self, user_id: int) -> Optional[str]:
        with self._lock:
            return self._handles.get(user_id)

    def is_online(self, user_id: int) -> bool:
        return self.lookup(user_id) is not None

    def online_ids(self) -> List[int]:
        with self._lock:
            return list(self._handles)

    def reset(self) -> None:
        with self._lock:
            self._handles.clear()

    def __len__(self):
        with self._lock:
            return len(self._handles)
