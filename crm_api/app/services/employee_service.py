"""
Business logic for employees: registration, login and token checks.

``EmployeeService`` owns the ``employees`` table.  Passwords are stored
as salted PBKDF2 hashes (see ``core.security``) and never leave this
module.  Login failures are reported with one generic message whether
the email is unknown or the password is wrong, so callers cannot tell
which accounts exist.
"""

import logging
import sqlite3
from typing import Optional

from ..core.config import Settings
from ..core.db import get_connection, get_cursor, utcnow
from ..core.errors import AuthError, ConfigError, ConflictError, ValidationError
from ..core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from ..schemas.employee import EmployeeSummary, LoginResult
from .validation import is_blank, require_email


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."
DUPLICATE_EMAIL = "An account already exists for this email."


class EmployeeService:
    """Service for employee accounts and bearer tokens."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def register(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> EmployeeSummary:
        """Create an employee account.

        Raises
        ------
        ValidationError
            If a field is missing or the email is malformed.
        ConflictError
            If the email is already registered.
        """
        if is_blank(name) or is_blank(email) or not password:
            raise ValidationError("Name, email and password are required.")
        require_email(email)

        # Hash before taking the write lock; it is the slow part.
        hashed = hash_password(password, self.settings.hash_iterations)
        now = utcnow()
        try:
            with get_cursor(self.settings) as cursor:
                existing = cursor.execute(
                    "SELECT id FROM employees WHERE email = ?", (email,)
                ).fetchone()
                if existing:
                    raise ConflictError(DUPLICATE_EMAIL)
                cursor.execute(
                    "INSERT INTO employees (name, email, password, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (name, email, hashed, now, now),
                )
                employee_id = cursor.lastrowid
        except sqlite3.IntegrityError:
            # UNIQUE(email) caught a writer the lookup above did not see.
            raise ConflictError(DUPLICATE_EMAIL) from None

        logger.info("Registered employee %s (%s)", employee_id, email)
        return EmployeeSummary(id=employee_id, name=name, email=email)

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """Check credentials and issue a bearer token.

        Raises
        ------
        ValidationError
            If email or password is missing.
        AuthError
            If the email is unknown or the password does not match.
        ConfigError
            If no signing secret is configured.
        """
        if is_blank(email) or not password:
            raise ValidationError("Email and password are both required.")

        conn = get_connection(self.settings)
        try:
            row = conn.execute(
                "SELECT id, name, email, password FROM employees WHERE email = ?",
                (email,),
            ).fetchone()
        finally:
            conn.close()

        if not row or not verify_password(password, row["password"]):
            logger.warning("Failed login attempt for %s", email)
            raise AuthError(INVALID_CREDENTIALS)

        if not self.settings.jwt_secret:
            raise ConfigError("JWT_SECRET is missing; refusing to issue token.")

        token = create_access_token(
            {"id": row["id"]},
            self.settings.jwt_secret,
            self.settings.token_ttl_seconds,
        )
        logger.info("Employee %s logged in", row["id"])
        return LoginResult(
            token=token,
            employee=EmployeeSummary(id=row["id"], name=row["name"], email=row["email"]),
        )

    def verify(self, token: Optional[str]) -> int:
        """Resolve a bearer token to the id of an existing employee.

        Raises ``AuthError`` if the token is missing, malformed, expired,
        badly signed, or names an employee that does not exist.
        """
        if not token:
            raise AuthError("Authentication required.")
        payload = decode_access_token(token, self.settings.jwt_secret or "")
        employee_id = payload.get("id") if payload else None
        if not isinstance(employee_id, int) or isinstance(employee_id, bool):
            logger.warning("Rejected bearer token")
            raise AuthError("Invalid or expired token.")

        conn = get_connection(self.settings)
        try:
            row = conn.execute(
                "SELECT id FROM employees WHERE id = ?", (employee_id,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            logger.warning("Bearer token for unknown employee %s", employee_id)
            raise AuthError("Invalid or expired token.")
        return employee_id

    def get_employee(self, employee_id: int) -> Optional[EmployeeSummary]:
        """Retrieve an employee by id."""
        conn = get_connection(self.settings)
        try:
            row = conn.execute(
                "SELECT id, name, email FROM employees WHERE id = ?", (employee_id,)
            ).fetchone()
        finally:
            conn.close()
        if row:
            return EmployeeSummary(id=row["id"], name=row["name"], email=row["email"])
        return None
