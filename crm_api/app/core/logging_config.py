"""
Logging setup for the CRM API.

Records go to the root logger, which gets a console handler and, when
``LOG_FILE`` is set, a file handler.  Handlers are attached once per
process, but the level is re-applied on every call: the last
``create_app`` wins, and a host that installed its own handlers (pytest,
uvicorn) still gets the configured ``LOG_LEVEL``.

SQL tracing (``DB_LOGGING``) is emitted at DEBUG by ``core.db``.  Turning
it on lowers that one logger to DEBUG, so statements are shown without
dropping the whole application to DEBUG.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Logger used by core.db for the per-statement trace.
SQL_LOGGER = "crm_api.app.core.db"


def _level(name: str) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    sql_trace: bool = False,
) -> None:
    """Configure the root logger and the SQL trace logger.

    Parameters
    ----------
    level : str
        Level name for the root logger (``"DEBUG"``, ``"INFO"`` ...).
    logfile : Optional[str]
        Extra file to write records to.  Only used the first time
        handlers are attached.
    sql_trace : bool
        Show the statements traced by ``core.db`` regardless of
        ``level``.
    """
    root = logging.getLogger()
    root.setLevel(_level(level))

    sql_logger = logging.getLogger(SQL_LOGGER)
    sql_logger.setLevel(logging.DEBUG if sql_trace else logging.NOTSET)

    if root.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
