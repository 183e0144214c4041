"""
Configuration management.

The ``Settings`` dataclass collects every tunable value of the service:
database location, token signing secret and lifetime, password hashing
cost and the listen address.  It is immutable and is built exactly once
at process start by :meth:`Settings.from_env`; the resulting instance is
handed to the application factory and from there to the services, so no
business logic reads environment variables directly.

All keys are plain environment variables.  A ``.env`` file is not read
automatically; export the variables in the shell or the process manager.
"""

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError


_TTL_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_TTL_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_ttl(value: str) -> int:
    """Convert a lifetime such as ``"3600"``, ``"15m"`` or ``"1h"`` to seconds."""
    match = _TTL_RE.match(value or "")
    if not match:
        raise ConfigError(f"Invalid token lifetime: {value!r}")
    seconds = int(match.group(1)) * _TTL_UNITS[match.group(2).lower()]
    if seconds <= 0:
        raise ConfigError("Token lifetime must be positive")
    return seconds


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _bool(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "false").lower() in {"1", "true", "yes"}


# Names understood by both ``logging`` and uvicorn's ``--log-level``.
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _log_level(env: Mapping[str, str]) -> str:
    raw = env.get("LOG_LEVEL") or "INFO"
    level = raw.strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {raw!r}"
        )
    return level


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    project_name: str = "CRM API"
    api_version: str = "1.0.0"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Only ``sqlite`` is implemented by ``core.db``.  For any other dialect
    # the server fields are checked by ``core.db.check_database_settings``
    # so a half-filled configuration fails with a clear message.
    db_dialect: str = "sqlite"
    db_storage: str = "crm_db.sqlite"
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "localhost"
    db_port: Optional[int] = None
    db_logging: bool = False
    db_timeout: int = 5

    # Signing secret for bearer tokens.  ``None`` means tokens can neither
    # be issued nor verified.
    jwt_secret: Optional[str] = None
    token_ttl_seconds: int = 3600
    hash_iterations: int = 100_000

    host: str = "0.0.0.0"
    port: int = 3000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ``).

        Raises
        ------
        ConfigError
            If a numeric value or the log level cannot be parsed.
        """
        env = os.environ if env is None else env
        return cls(
            project_name=env.get("PROJECT_NAME", cls.project_name),
            api_version=env.get("API_VERSION", cls.api_version),
            log_level=_log_level(env),
            log_file=env.get("LOG_FILE") or None,
            db_dialect=env.get("DB_DIALECT", cls.db_dialect).lower(),
            db_storage=env.get("DB_STORAGE", cls.db_storage),
            db_name=env.get("DB_NAME") or None,
            db_user=env.get("DB_USER") or None,
            db_password=env.get("DB_PASSWORD") or None,
            db_host=env.get("DB_HOST", cls.db_host),
            db_port=_int(env, "DB_PORT", 0) or None,
            db_logging=_bool(env, "DB_LOGGING"),
            db_timeout=_int(env, "DB_TIMEOUT", cls.db_timeout),
            jwt_secret=env.get("JWT_SECRET") or None,
            token_ttl_seconds=parse_ttl(env.get("JWT_TTL", "1h")),
            hash_iterations=_int(env, "PASSWORD_HASH_ITERATIONS", cls.hash_iterations),
            host=env.get("HOST", cls.host),
            port=_int(env, "PORT", cls.port),
        )
