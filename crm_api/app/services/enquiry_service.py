"""
Business logic for enquiries.

Enquiries are submitted anonymously and start out unclaimed.  An
employee claims one to become its counselor; the transition is one-way
and a claimed enquiry is never re-assigned.

Claiming is done with a single conditional ``UPDATE`` that only matches
rows which are still unclaimed.  SQLite executes it atomically, so of
several employees racing for the same enquiry exactly one update hits
the row.  The others see zero affected rows and re-read the enquiry to
report why: unknown id, owned by someone else, or already theirs.
"""

import logging
import re
import sqlite3
from typing import List, Optional, Union

from ..core.config import Settings
from ..core.db import get_connection, get_cursor, utcnow
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..schemas.enquiry import ClaimResult, EnquiryRead, EnquiryReceipt
from .validation import is_blank, require_email


logger = logging.getLogger(__name__)

ENQUIRY_COLUMNS = (
    "id, name, email, course_interest, claimed, counselor_id, created_at, updated_at"
)

CLAIMED = "Enquiry claimed successfully."
ALREADY_YOURS = "Enquiry was already claimed by you."


def _row_to_enquiry(row: sqlite3.Row) -> EnquiryRead:
    return EnquiryRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        course_interest=row["course_interest"],
        claimed=bool(row["claimed"]),
        counselor_id=row["counselor_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


_ID_RE = re.compile(r"[0-9]+")
# Largest rowid SQLite can store.
MAX_ID = 2**63 - 1


def _parse_id(enquiry_id: Union[int, str]) -> int:
    # Only plain ASCII digits within SQLite's rowid range can match a row;
    # anything else ("1_0", " 7", "٣", overflowing values) is unknown.
    if isinstance(enquiry_id, bool):
        raise NotFoundError("Enquiry not found.")
    if isinstance(enquiry_id, int):
        value = enquiry_id
    elif isinstance(enquiry_id, str) and _ID_RE.fullmatch(enquiry_id):
        value = int(enquiry_id)
    else:
        raise NotFoundError("Enquiry not found.")
    if not 0 < value <= MAX_ID:
        raise NotFoundError("Enquiry not found.")
    return value


class EnquiryService:
    """Service for submitting, listing and claiming enquiries."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def submit(
        self,
        name: Optional[str],
        email: Optional[str],
        course_interest: Optional[str] = None,
    ) -> EnquiryReceipt:
        """Store a new, unclaimed enquiry.

        Only the id and creation time are returned to the anonymous
        caller.

        Raises
        ------
        ValidationError
            If name or email is missing, or the email is malformed.
        """
        if is_blank(name) or is_blank(email):
            raise ValidationError("Name and email are required to submit an enquiry.")
        require_email(email)
        if is_blank(course_interest):
            course_interest = None

        now = utcnow()
        with get_cursor(self.settings) as cursor:
            cursor.execute(
                "INSERT INTO enquiries "
                "(name, email, course_interest, claimed, counselor_id, created_at, updated_at) "
                "VALUES (?, ?, ?, 0, NULL, ?, ?)",
                (name, email, course_interest, now, now),
            )
            enquiry_id = cursor.lastrowid

        logger.info("Enquiry %s submitted", enquiry_id)
        return EnquiryReceipt(id=enquiry_id, created_at=now)

    def list_unclaimed(self) -> List[EnquiryRead]:
        """Return every unclaimed enquiry, newest first."""
        conn = get_connection(self.settings)
        try:
            rows = conn.execute(
                f"SELECT {ENQUIRY_COLUMNS} FROM enquiries WHERE claimed = 0 "
                "ORDER BY created_at DESC, id DESC"
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_enquiry(row) for row in rows]

    def list_owned(self, employee_id: int) -> List[EnquiryRead]:
        """Return the enquiries claimed by ``employee_id``, most recently changed first."""
        conn = get_connection(self.settings)
        try:
            rows = conn.execute(
                f"SELECT {ENQUIRY_COLUMNS} FROM enquiries WHERE counselor_id = ? "
                "ORDER BY updated_at DESC, id DESC",
                (employee_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_enquiry(row) for row in rows]

    def get(self, enquiry_id: Union[int, str]) -> EnquiryRead:
        """Retrieve an enquiry by id or raise ``NotFoundError``."""
        conn = get_connection(self.settings)
        try:
            row = conn.execute(
                f"SELECT {ENQUIRY_COLUMNS} FROM enquiries WHERE id = ?",
                (_parse_id(enquiry_id),),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Enquiry not found.")
        return _row_to_enquiry(row)

    def claim(self, enquiry_id: Union[int, str], employee_id: int) -> ClaimResult:
        """Make ``employee_id`` the counselor of an unclaimed enquiry.

        Claiming an enquiry the caller already owns succeeds without
        changing it.

        Raises
        ------
        NotFoundError
            If no enquiry has this id.
        ConflictError
            If another employee has already claimed it.
        """
        enquiry_id = _parse_id(enquiry_id)
        with get_cursor(self.settings) as cursor:
            cursor.execute(
                "UPDATE enquiries SET claimed = 1, counselor_id = ?, updated_at = ? "
                "WHERE id = ? AND claimed = 0",
                (employee_id, utcnow(), enquiry_id),
            )
            won = cursor.rowcount == 1
            row = cursor.execute(
                f"SELECT {ENQUIRY_COLUMNS} FROM enquiries WHERE id = ?",
                (enquiry_id,),
            ).fetchone()

        if won:
            logger.info("Employee %s claimed enquiry %s", employee_id, enquiry_id)
            return ClaimResult(message=CLAIMED, enquiry=_row_to_enquiry(row))
        if row is None:
            raise NotFoundError("Enquiry not found.")
        if row["counselor_id"] == employee_id:
            return ClaimResult(message=ALREADY_YOURS, enquiry=_row_to_enquiry(row))
        logger.warning(
            "Employee %s tried to claim enquiry %s owned by %s",
            employee_id,
            enquiry_id,
            row["counselor_id"],
        )
        raise ConflictError("This enquiry has already been claimed.")
