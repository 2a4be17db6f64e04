"""Provides an app factory for the example application."""

from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from cache_sessions import Sessions, current_session, delete_session
from cache_sessions.app_logging import setup_logger
from cache_sessions.store import SessionCache


def jsonify_exception(error: HTTPException):
    exc_resp = error.get_response()
    response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def index() -> str:
    """Count the views in this session."""
    current_session['views'] = current_session.get('views', 0) + 1
    return f'Views: {current_session["views"]}'


def logout() -> str:
    """Forget the session."""
    delete_session()
    return 'Bye'


def create_app(cache: Optional[SessionCache] = None) -> Flask:
    """Initialize an instance of the example application."""
    app = Flask('example')
    app.config.from_object('example.config')
    setup_logger(app.config['LOGLEVEL'], service=app.name,
                 filename=app.config['LOGFILE'])

    Sessions(app, cache=cache,
             key=app.config['SESSION_KEY'],
             expires_in=app.config['SESSION_EXPIRES_IN'],
             cookie={'secure': app.config['CACHE_SESSION_COOKIE_SECURE']})

    app.add_url_rule('/', 'index', index)
    app.add_url_rule('/logout', 'logout', logout, methods=['GET', 'POST'])
    app.register_error_handler(HTTPException, jsonify_exception)
    return app
