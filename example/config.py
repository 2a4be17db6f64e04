"""Flask configuration for the example application."""

import os

SESSION_KEY = os.environ.get('SESSION_KEY', 'notverysecret')
"""Secret used to sign session identifiers."""

SESSION_EXPIRES_IN = int(os.environ.get('SESSION_EXPIRES_IN',
                                        24 * 60 * 60 * 1000))
"""Session lifetime in milliseconds."""

CACHE_SESSION_COOKIE_SECURE = \
    os.environ.get('CACHE_SESSION_COOKIE_SECURE', '1') == '1'
"""Never set this to ``0`` in production."""

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_CLUSTER = os.environ.get('REDIS_CLUSTER', '0')

LOGLEVEL = int(os.environ.get('LOGLEVEL', '20'))

LOGFILE = os.environ.get('LOGFILE')
"""Write JSON log records here instead of stderr."""
