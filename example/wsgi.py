"""Web Server Gateway Interface entry-point."""

from example.factory import create_app

application = create_app()
