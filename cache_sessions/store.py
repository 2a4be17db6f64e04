"""
Key-value cache that holds session data.

Session data are stored as JSON under the session identifier, namespaced by
the configured cache segment. The cache owns expiry and eviction of entries.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union
import json

from flask import Flask
import redis
from redis.cluster import RedisCluster

from .exceptions import CacheUnavailableError

import logging

logger = logging.getLogger(__name__)


class SessionCache(ABC):
    """Storage for session data, keyed by session identifier."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[Any]:
        """Get the data stored for ``session_id``, or ``None``."""

    @abstractmethod
    def set(self, session_id: str, value: Any, ttl: int = 0) -> None:
        """
        Store ``value`` for ``session_id``.

        A ``ttl`` (ms) of 0 uses the lifetime configured for the segment.
        """

    @abstractmethod
    def drop(self, session_id: str) -> None:
        """Remove the entry for ``session_id``, if there is one."""


class RedisCache(SessionCache):
    """
    Session cache backed by Redis.

    The Redis client is thread safe and connections are attached at the time
    a command is executed, so a single instance can be shared by all requests.
    """

    def __init__(self, host: str, port: int, db: int = 0,
                 segment: str = 'session',
                 expires_in: Optional[int] = None,
                 cluster: bool = False) -> None:
        """Open the connection to Redis."""
        logger.debug('New Redis connection at %s, port %s', host, port)
        self.r: Union[redis.StrictRedis, RedisCluster]
        if cluster:
            self.r = RedisCluster(host=host, port=port)
        else:
            self.r = redis.StrictRedis(host=host, port=port, db=db)
        self._segment = segment
        self._expires_in = expires_in

    def _key(self, session_id: str) -> str:
        return f'{self._segment}:{session_id}'

    def get(self, session_id: str) -> Optional[Any]:
        """
        Get the data stored for a session.

        Parameters
        ----------
        session_id : str

        Returns
        -------
        object or None
            ``None`` if there is no entry for ``session_id``.

        Raises
        ------
        :class:`CacheUnavailableError`

        """
        try:
            raw = self.r.get(self._key(session_id))
        except redis.exceptions.ConnectionError as e:
            raise CacheUnavailableError(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise CacheUnavailableError(f'Failed to get: {e}') from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheUnavailableError('Invalid or corrupted session') from e

    def set(self, session_id: str, value: Any, ttl: int = 0) -> None:
        """
        Store the data for a session.

        Parameters
        ----------
        session_id : str
        value : object
            Must be JSON-serializable.
        ttl : int
            Lifetime of the entry in ms; 0 uses the segment lifetime.

        Raises
        ------
        :class:`CacheUnavailableError`

        """
        data = json.dumps(value)
        try:
            self.r.set(self._key(session_id), data,
                       px=ttl or self._expires_in or None)
        except redis.exceptions.ConnectionError as e:
            raise CacheUnavailableError(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise CacheUnavailableError(f'Failed to set: {e}') from e

    def drop(self, session_id: str) -> None:
        """
        Delete the entry for a session.

        Raises
        ------
        :class:`CacheUnavailableError`

        """
        try:
            self.r.delete(self._key(session_id))
        except redis.exceptions.ConnectionError as e:
            raise CacheUnavailableError(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise CacheUnavailableError(f'Failed to delete: {e}') from e


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_CLUSTER', '0')


def get_redis_cache(app: Flask, segment: str = 'session',
                    expires_in: Optional[int] = None) -> RedisCache:
    """Get a :class:`RedisCache` configured from ``app``."""
    config = app.config
    return RedisCache(
        host=config.get('REDIS_HOST', 'localhost'),
        port=int(config.get('REDIS_PORT', '6379')),
        db=int(config.get('REDIS_DATABASE', '0')),
        segment=segment,
        expires_in=expires_in,
        cluster=config.get('REDIS_CLUSTER', '0') == '1'
    )
