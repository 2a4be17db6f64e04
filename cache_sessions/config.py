"""
Resolution of session options into an immutable configuration.

Options are supplied as a (possibly nested) mapping, for example:

.. code-block:: python

   {
       'key': 'notverysecret',
       'expires_in': 24 * 60 * 60 * 1000,
       'cookie': {'secure': False},
   }

and merged onto :data:`DEFAULTS` by :func:`resolve`. Durations are in
milliseconds throughout.
"""

from typing import Any, Mapping, NamedTuple, Optional, Tuple, Union

import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MAX_EXPIRES_IN = 2 ** 31 - 1
"""Longest duration (ms) a cache entry may be kept for."""

SAME_SITE_VALUES = ('Strict', 'Lax', 'None')


class CookieOptions(NamedTuple):
    """Attributes of the session cookie."""

    secure: bool = True
    http_only: bool = True
    same_site: Optional[str] = 'Lax'
    path: str = '/'
    domain: Optional[str] = None

    ttl: Optional[int] = None
    """Cookie lifetime in ms. ``None`` produces a browser-session cookie."""


class CacheOptions(NamedTuple):
    """Options for the cache segment that holds session data."""

    segment: str = 'session'
    """Namespace of session entries in the cache."""

    expires_in: Optional[int] = None
    """Default lifetime (ms) of a cache entry."""


class SessionConfig(NamedTuple):
    """Resolved session options. Build with :func:`resolve`."""

    algorithm: str = 'sha256'
    """Name of the hash used to sign identifiers."""

    cache: CacheOptions = CacheOptions()
    cookie: CookieOptions = CookieOptions()

    key: Optional[bytes] = None
    """Signing secret. Without it identifiers are neither signed nor expire."""

    name: str = 'id'
    """Name of the session cookie."""

    size: int = 16
    """Number of random bytes in an identifier."""

    vhost: Optional[Tuple[str, ...]] = None
    """Host names on which sessions are handled; ``None`` means any host."""

    expires_in: Optional[int] = None
    """Lifetime (ms) of a session identifier."""

    @property
    def expiring(self) -> bool:
        """Whether identifiers carry a signed expiry time."""
        return bool(self.key and self.expires_in)


DEFAULTS: Mapping[str, Any] = {
    'algorithm': 'sha256',
    'cache': {'segment': 'session'},
    'cookie': {'same_site': 'Lax', 'path': '/'},
    'name': 'id',
    'size': 16,
    'vhost': '*',
}


def _merge(defaults: Mapping[str, Any],
           overrides: Mapping[str, Any]) -> dict:
    """Merge ``overrides`` onto ``defaults`` one level of mappings deep."""
    merged = dict(defaults)
    for option, value in overrides.items():
        current = merged.get(option)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = {**current, **value}
        merged[option] = value
    return merged


def _check_keys(section: str, values: Mapping[str, Any],
                known: Tuple[str, ...]) -> None:
    unknown = sorted(set(values) - set(known))
    if unknown:
        raise ConfigurationError(
            f'Unknown {section} option(s): {", ".join(unknown)}'
        )


def _as_key(key: Union[str, bytes, None]) -> Optional[bytes]:
    if key is None or isinstance(key, bytes):
        return key or None
    if isinstance(key, str):
        return key.encode('utf-8') or None
    raise ConfigurationError('key must be str or bytes')


def _as_vhost(vhost: Any) -> Optional[Tuple[str, ...]]:
    if vhost is None or vhost == '*':
        return None
    if isinstance(vhost, str):
        return (vhost.lower(),)
    return tuple(host.lower() for host in vhost)


def _as_duration(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) \
            or value < 0:
        raise ConfigurationError(f'{name} must be a non-negative duration')
    return int(value)


def resolve(overrides: Optional[Mapping[str, Any]] = None) -> SessionConfig:
    """
    Merge user-supplied options onto the defaults.

    Parameters
    ----------
    overrides : mapping
        Options to apply. A value of ``None`` clears the option rather than
        falling back to its default.

    Returns
    -------
    :class:`SessionConfig`

    Raises
    ------
    :class:`ConfigurationError`
        Raised if an option is unknown or has an unusable value.

    """
    options = _merge(DEFAULTS, overrides or {})
    _check_keys('session', options, SessionConfig._fields)
    cookie = options.get('cookie') or {}
    cache = options.get('cache') or {}
    _check_keys('cookie', cookie, CookieOptions._fields)
    _check_keys('cache', cache, CacheOptions._fields)

    size = options.get('size')
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise ConfigurationError('size must be a positive integer')
    name = options.get('name')
    if not name or not isinstance(name, str):
        raise ConfigurationError('name must be a non-empty string')
    algorithm = options.get('algorithm')
    if not algorithm or not isinstance(algorithm, str):
        raise ConfigurationError('algorithm must be the name of a hash')
    if cookie.get('same_site') not in SAME_SITE_VALUES + (None,):
        raise ConfigurationError(
            f'cookie same_site must be one of {SAME_SITE_VALUES} or None'
        )

    key = _as_key(options.get('key'))
    expires_in = _as_duration('expires_in', options.get('expires_in'))
    if expires_in and not key:
        logger.warning('expires_in is set without a key; identifiers will'
                       ' not expire, only cache entries will')

    if 'expires_in' in cache:
        cache_expires_in = _as_duration('cache expires_in',
                                        cache['expires_in'])
    else:
        cache_expires_in = min(expires_in or MAX_EXPIRES_IN, MAX_EXPIRES_IN)
    cookie_ttl = _as_duration('cookie ttl', cookie.get('ttl', expires_in))

    return SessionConfig(
        algorithm=algorithm,
        cache=CacheOptions(
            segment=cache.get('segment') or DEFAULTS['cache']['segment'],
            expires_in=cache_expires_in
        ),
        cookie=CookieOptions(
            secure=bool(cookie.get('secure', True)),
            http_only=bool(cookie.get('http_only', True)),
            same_site=cookie.get('same_site'),
            path=cookie.get('path') or '/',
            domain=cookie.get('domain'),
            ttl=cookie_ttl
        ),
        key=key,
        name=name,
        size=size,
        vhost=_as_vhost(options.get('vhost')),
        expires_in=expires_in
    )
