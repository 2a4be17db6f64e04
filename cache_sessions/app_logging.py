"""JSON logging for applications that use :mod:`cache_sessions`."""

from typing import Optional
import logging
from pythonjsonlogger import jsonlogger

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: int = logging.INFO, service: Optional[str] = None,
                 filename: Optional[str] = None) -> logging.Handler:
    """
    Send root logger output as JSON, one record per line.

    Parameters
    ----------
    level : int
        Level of the root logger.
    service : str
        If given, added to every record as ``service`` so that session log
        lines can be told apart from those of other applications.
    filename : str
        Write records to this file instead of stderr.

    Returns
    -------
    :class:`logging.Handler`
        The handler that was attached to the root logger.

    """
    if filename:
        handler: logging.Handler = logging.FileHandler(filename)
    else:
        handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        FORMAT, rename_fields={'levelname': 'level', 'asctime': 'timestamp'},
        static_fields={'service': service} if service else {}
    )
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
