"""Helpers for testing session handling."""

from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from copy import deepcopy

from ..exceptions import CacheUnavailableError
from ..store import SessionCache

OPERATIONS = ('get', 'set', 'drop')


class DictCache(SessionCache):
    """In-process stand-in for the session cache that records its calls."""

    def __init__(self) -> None:
        self.entries: Dict[str, Any] = {}
        self.writes: List[Tuple[str, Any, int]] = []
        self.drops: List[str] = []
        self.stopped: FrozenSet[str] = frozenset()

    def stop(self, operations: Iterable[str] = OPERATIONS) -> None:
        """Make subsequent calls to ``operations`` fail."""
        self.stopped = frozenset(operations)

    def _check(self, operation: str) -> None:
        if operation in self.stopped:
            raise CacheUnavailableError(f'Cache is stopped ({operation})')

    def get(self, session_id: str) -> Optional[Any]:
        self._check('get')
        return deepcopy(self.entries.get(session_id))

    def set(self, session_id: str, value: Any, ttl: int = 0) -> None:
        self._check('set')
        self.writes.append((session_id, deepcopy(value), ttl))
        self.entries[session_id] = deepcopy(value)

    def drop(self, session_id: str) -> None:
        self._check('drop')
        self.drops.append(session_id)
        self.entries.pop(session_id, None)
