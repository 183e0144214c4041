"""Entry point for the CRM API server.

Builds the settings from the environment, creates the application
(which applies database migrations) and serves it with Uvicorn on
``HOST:PORT``.  Configuration is read from environment variables; see
``crm_api/app/core/config.py`` for the full list.

Usage:
    JWT_SECRET=... python run.py
"""
import logging
import sys

from uvicorn import Config, Server

from crm_api.app.core.config import Settings
from crm_api.app.core.errors import ConfigError
from crm_api.app.main import create_app


def main() -> int:
    """Boot the server; returns a process exit code."""
    try:
        settings = Settings.from_env()
        app = create_app(settings)
        config = Config(
            app=app,
            host=settings.host,
            port=settings.port,
            reload=False,
            log_level=settings.log_level.lower(),
        )
    except (ConfigError, OSError) as exc:
        logging.basicConfig(level=logging.INFO)
        logging.exception("Server boot failed: %s", exc)
        return 1
    logging.getLogger(__name__).info("Server listening on port %s", settings.port)
    Server(config).run()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
