import threading
from typing import Any, Dict, Hashable, Optional


class ViewCache:
    """
    In-process cache of rendered views, grouped by request path.

    Every ``invalidate`` bumps the path's generation. A render computed
    under an older generation is dropped by ``set`` instead of being cached.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Dict[Hashable, Any]] = {}
        self._generations: Dict[str, int] = {}

    def generation(self, path: str) -> int:
        with self._lock:
            return self._generations.get(path, 0)

    def get(self, path: str, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(path, {}).get(key)

    def set(self, path: str, key: Hashable, value: Any, generation: Optional[int] = None) -> bool:
        """Cache ``value``; returns False if ``path`` was invalidated since ``generation``."""
        with self._lock:
            if generation is not None and generation != self._generations.get(path, 0):
                return False
            self._entries.setdefault(path, {})[key] = value
            return True

    def invalidate(self, path: str) -> None:
        """Mark every cached render of ``path`` stale."""
        with self._lock:
            self._entries.pop(path, None)
            self._generations[path] = self._generations.get(path, 0) + 1


view_cache = ViewCache()


def get_view_cache() -> ViewCache:
    return view_cache
