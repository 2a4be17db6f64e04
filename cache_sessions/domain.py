"""Request-scoped session state."""

from typing import Any, Dict, Optional
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum


def same_value(left: Any, right: Any) -> bool:
    """
    Deep equality that also tells apart values of different types.

    ``1``, ``1.0`` and ``True`` are equal in Python but are stored as
    different JSON values, so a change from one to another must be saved.
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        return left.keys() == right.keys() \
            and all(same_value(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) \
            and all(same_value(a, b) for a, b in zip(left, right))
    return bool(left == right)


class SessionState(Enum):
    """Where a request's session stands."""

    ABSENT = 'absent'
    """No session semantics apply to the request (e.g. host not in scope)."""

    EMPTY = 'empty'
    """A new session that has not been stored yet."""

    POPULATED = 'populated'
    """A session loaded from the cache."""

    DELETED = 'deleted'
    """The session was removed while handling the request."""


@dataclass
class SessionContext:
    """
    The session working set of a single request.

    ``data`` is the live mapping read and written by the application;
    ``baseline`` is a copy of it taken when the session was loaded and is used
    only to detect changes before the response goes out.
    """

    state: SessionState
    data: Optional[Dict[str, Any]] = None
    baseline: Optional[Dict[str, Any]] = None

    session_id: Optional[str] = None
    """Identifier the session was loaded under, if any."""

    clear_cookie: bool = False
    """The request carried a stale cookie that should be cleared."""

    @classmethod
    def absent(cls) -> 'SessionContext':
        return cls(state=SessionState.ABSENT)

    @classmethod
    def fresh(cls, clear_cookie: bool = False) -> 'SessionContext':
        return cls(state=SessionState.EMPTY, data={}, baseline={},
                   clear_cookie=clear_cookie)

    @classmethod
    def loaded(cls, session_id: str, data: Dict[str, Any]) -> 'SessionContext':
        return cls(state=SessionState.POPULATED, data=data,
                   baseline=deepcopy(data), session_id=session_id)

    @property
    def is_dirty(self) -> bool:
        """Whether the session must be written or removed."""
        if self.state is SessionState.ABSENT:
            return False
        if self.state is SessionState.DELETED:
            return True
        return not same_value(self.data, self.baseline)

    def delete(self) -> None:
        """Mark the session for removal at the end of the request."""
        if self.state is SessionState.ABSENT:
            raise RuntimeError('No session is available for this request')
        self.state = SessionState.DELETED
        self.data = None
