"""
Cache-backed cookie sessions for Flask applications.

Intended for use in a Flask application factory, for example:

.. code-block:: python

   from flask import Flask
   from cache_sessions import Sessions, current_session


   def create_web_app() -> Flask:
       app = Flask('someapp')
       app.config.from_pyfile('config.py')
       Sessions(app, key=app.config['SESSION_KEY'],
                expires_in=24 * 60 * 60 * 1000)

       @app.route('/')
       def index() -> str:
           current_session['views'] = current_session.get('views', 0) + 1
           return f'Views: {current_session["views"]}'

       return app

Before each request the session cookie is validated and the session data are
loaded from the cache. After the request is handled, the data are written back
only if they changed; a cookie is issued only when a new session is stored.
"""

from typing import Any, Dict, Optional
from datetime import datetime, timedelta
from urllib.parse import urlsplit
import math

from flask import Flask, Response, current_app, request
from pytz import UTC
from werkzeug.exceptions import HTTPException, InternalServerError, \
    ServiceUnavailable
from werkzeug.local import LocalProxy

from . import config, store
from .domain import SessionContext, SessionState
from .exceptions import CacheUnavailableError, ConfigurationError, \
    IdentifierConstructionError
from .identifiers import IdentifierCodec
from .store import SessionCache

import logging

logger = logging.getLogger(__name__)

EXTENSION = 'cache_sessions'
CONTEXT_KEY = 'cache_sessions.context'
"""Key of the request's :class:`.SessionContext` in the WSGI environ."""


class Sessions(object):
    """
    Loads and stores session data around each request.

    Parameters
    ----------
    app : :class:`Flask`
    cache : :class:`.SessionCache`
        Where session data are kept. If not given, a Redis cache is built from
        the ``REDIS_*`` parameters in the application config.
    options
        Session options (see :func:`.config.resolve`). These take precedence
        over ``CACHE_SESSION_OPTIONS`` in the application config.

    """

    def __init__(self, app: Optional[Flask] = None,
                 cache: Optional[SessionCache] = None,
                 **options: Any) -> None:
        self._cache = cache
        self._options = options
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Attach :meth:`.load_session` and :meth:`.store_session` to the app.

        Parameters
        ----------
        app : :class:`Flask`

        """
        overrides: Dict[str, Any] = \
            dict(app.config.get('CACHE_SESSION_OPTIONS') or {})
        overrides.update(self._options)
        self.config = config.resolve(overrides)
        self.codec = IdentifierCodec(self.config)
        if self._cache is None:
            store.init_app(app)
            self.cache: SessionCache = store.get_redis_cache(
                app, self.config.cache.segment, self.config.cache.expires_in
            )
        else:
            self.cache = self._cache

        app.extensions[EXTENSION] = self
        app.before_request(self.load_session)
        app.after_request(self.store_session)

    def _in_scope(self) -> bool:
        if self.config.vhost is None:
            return True
        hostname = urlsplit(f'//{request.host}').hostname
        return hostname in self.config.vhost

    def load_session(self) -> None:
        """
        Load the session for the current request.

        Raises
        ------
        :class:`ServiceUnavailable`
            Raised if the session data could not be read from the cache.

        """
        if not self._in_scope():
            request.environ[CONTEXT_KEY] = SessionContext.absent()
            return
        cookie = request.cookies.get(self.config.name)
        request.environ[CONTEXT_KEY] = self._load(cookie)

    def _load(self, cookie: Optional[str]) -> SessionContext:
        if not cookie:
            return SessionContext.fresh()
        result = self.codec.validate(cookie)
        if not result.valid:
            if result.expired:
                logger.debug('Session cookie has expired')
            else:
                logger.debug('Session cookie is not valid')
            return SessionContext.fresh(clear_cookie=True)
        try:
            data = self.cache.get(cookie)
        except CacheUnavailableError as e:
            logger.error('Failed to load session: %s', e)
            raise ServiceUnavailable('Session store is unavailable') from e
        if data is None:
            logger.debug('No data for session; starting a new one')
            return SessionContext.fresh(clear_cookie=True)
        return SessionContext.loaded(cookie, data)

    def store_session(self, response: Response) -> Response:
        """
        Store or remove the session for the current request, if it changed.

        A failure to store the session replaces ``response`` with an error
        response, so that no cookie for an unsaved session reaches the client.
        """
        context: Optional[SessionContext] = request.environ.get(CONTEXT_KEY)
        if context is None or context.state is SessionState.ABSENT:
            return response
        try:
            self._store(context, response)
        except IdentifierConstructionError as e:
            logger.error('Failed to create session id: %s', e)
            return self._error_response(InternalServerError())
        except CacheUnavailableError as e:
            logger.error('Failed to store session: %s', e)
            return self._error_response(
                ServiceUnavailable('Session store is unavailable')
            )
        return response

    def _store(self, context: SessionContext, response: Response) -> None:
        if not context.is_dirty:
            if context.clear_cookie:
                self._clear_cookie(response)
            return

        if context.state is SessionState.DELETED:
            if context.session_id is not None:
                self.cache.drop(context.session_id)
            self._clear_cookie(response)
            return

        session_id = context.session_id
        if session_id is None:
            session_id = self.codec.construct()
        self.cache.set(session_id, context.data, 0)
        if context.session_id is None:
            self._set_cookie(response, session_id)
            context.session_id = session_id

    def _set_cookie(self, response: Response, session_id: str) -> None:
        cookie = self.config.cookie
        max_age: Optional[int] = None
        expires: Optional[datetime] = None
        if cookie.ttl:
            max_age = int(math.ceil(cookie.ttl / 1000))
            expires = datetime.now(tz=UTC) + timedelta(milliseconds=cookie.ttl)
        response.set_cookie(self.config.name, session_id, max_age=max_age,
                            expires=expires, path=cookie.path,
                            domain=cookie.domain, secure=cookie.secure,
                            httponly=cookie.http_only,
                            samesite=cookie.same_site)

    def _clear_cookie(self, response: Response) -> None:
        cookie = self.config.cookie
        response.delete_cookie(self.config.name, path=cookie.path,
                               domain=cookie.domain, secure=cookie.secure,
                               httponly=cookie.http_only,
                               samesite=cookie.same_site)

    def _error_response(self, error: HTTPException) -> Response:
        """Render ``error`` with the application's own error handlers."""
        return current_app.make_response(
            current_app.handle_http_exception(error)
        )


def get_context() -> SessionContext:
    """Get the :class:`.SessionContext` of the current request."""
    context: Optional[SessionContext] = request.environ.get(CONTEXT_KEY)
    if context is None:
        return SessionContext.absent()
    return context


def _get_data() -> Dict[str, Any]:
    context = get_context()
    if context.data is None:
        raise RuntimeError(f'No session is available ({context.state.value})')
    return context.data


current_session: Dict[str, Any] = LocalProxy(_get_data)  # type: ignore
"""Session data of the current request."""


def delete_session() -> None:
    """Remove the current session when the request completes."""
    get_context().delete()


__all__ = ('Sessions', 'SessionCache', 'SessionContext', 'SessionState',
           'ConfigurationError', 'current_session', 'delete_session',
           'get_context')
