from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

import pytest

from crm_api.app.core.db import get_connection, init_db
from crm_api.app.core.errors import ConflictError
from crm_api.app.services import EmployeeService, EnquiryService
from crm_api.app.services import employee_service as employee_module
from crm_api.app.services.employee_service import DUPLICATE_EMAIL
from crm_api.app.services.enquiry_service import ALREADY_YOURS, CLAIMED


@pytest.fixture
def services(settings):
    init_db(settings)
    return EmployeeService(settings), EnquiryService(settings)


def _register(employees: EmployeeService, count: int) -> list[int]:
    return [
        employees.register(f"Counselor {i}", f"counselor{i}@example.com", "pw").id
        for i in range(count)
    ]


def _race(enquiries: EnquiryService, enquiry_id: int, claimants: list[int]):
    """Fire all claims at once; returns ``(claimant, outcome)`` pairs."""
    barrier = threading.Barrier(len(claimants))

    def attempt(employee_id):
        barrier.wait()
        try:
            return employee_id, enquiries.claim(enquiry_id, employee_id)
        except ConflictError as exc:
            return employee_id, exc

    with ThreadPoolExecutor(max_workers=len(claimants)) as pool:
        return list(pool.map(attempt, claimants))


@pytest.mark.parametrize("round_", range(5))
def test_concurrent_claims_have_exactly_one_winner(services, round_):
    employees, enquiries = services
    claimants = _register(employees, 8)
    enquiry_id = enquiries.submit("Taylor", "taylor@example.com").id

    outcomes = _race(enquiries, enquiry_id, claimants)

    winners = [emp for emp, result in outcomes if not isinstance(result, ConflictError) and result.message == CLAIMED]
    losers = [emp for emp, result in outcomes if isinstance(result, ConflictError)]
    assert len(winners) == 1
    assert len(losers) == len(claimants) - 1

    stored = enquiries.get(enquiry_id)
    assert stored.claimed is True
    assert stored.counselor_id == winners[0]
    for emp, result in outcomes:
        if not isinstance(result, ConflictError):
            assert result.enquiry.counselor_id == winners[0]


def test_repeated_claims_by_same_employee_race_safely(services):
    employees, enquiries = services
    owner, rival = _register(employees, 2)
    enquiry_id = enquiries.submit("Taylor", "taylor@example.com").id

    outcomes = _race(enquiries, enquiry_id, [owner, owner, owner, rival, rival])

    owners = {result.enquiry.counselor_id for _, result in outcomes if not isinstance(result, ConflictError)}
    assert len(owners) == 1
    (final_owner,) = owners
    messages = [result.message for _, result in outcomes if not isinstance(result, ConflictError)]
    assert messages.count(CLAIMED) == 1
    assert all(m in (CLAIMED, ALREADY_YOURS) for m in messages)
    # Every attempt by the loser of the race was rejected.
    loser = rival if final_owner == owner else owner
    assert all(isinstance(result, ConflictError) for emp, result in outcomes if emp == loser)


def test_no_torn_rows_after_many_races(services, settings):
    employees, enquiries = services
    claimants = _register(employees, 4)
    ids = [enquiries.submit(f"Prospect {i}", "p@example.com").id for i in range(10)]

    for enquiry_id in ids:
        _race(enquiries, enquiry_id, claimants)

    conn = get_connection(settings)
    try:
        torn = conn.execute(
            "SELECT COUNT(*) AS n FROM enquiries "
            "WHERE (claimed = 1 AND counselor_id IS NULL) OR (claimed = 0 AND counselor_id IS NOT NULL)"
        ).fetchone()["n"]
        unclaimed = conn.execute("SELECT COUNT(*) AS n FROM enquiries WHERE claimed = 0").fetchone()["n"]
    finally:
        conn.close()
    assert torn == 0
    assert unclaimed == 0
    owned = sum(len(enquiries.list_owned(emp)) for emp in claimants)
    assert owned == len(ids)


def test_concurrent_registrations_with_one_email_create_one_account(services, settings):
    employees, _ = services
    barrier = threading.Barrier(8)

    def attempt(i):
        barrier.wait()
        try:
            return employees.register(f"Counselor {i}", "same@example.com", "pw")
        except ConflictError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(8)))

    created = [o for o in outcomes if not isinstance(o, ConflictError)]
    assert len(created) == 1
    assert all(str(o) == DUPLICATE_EMAIL for o in outcomes if isinstance(o, ConflictError))

    conn = get_connection(settings)
    try:
        count = conn.execute(
            "SELECT COUNT(*) AS n FROM employees WHERE email = ?", ("same@example.com",)
        ).fetchone()["n"]
    finally:
        conn.close()
    assert count == 1


class _BlindLookup:
    """Cursor wrapper whose duplicate-email lookup never finds a row."""

    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, sql, params=()):
        if sql.startswith("SELECT id FROM employees"):
            return self._cursor.execute("SELECT NULL WHERE 0")
        return self._cursor.execute(sql, params)

    def __getattr__(self, name):
        return getattr(self._cursor, name)


def test_unique_email_constraint_is_reported_as_conflict(services, monkeypatch):
    employees, _ = services
    employees.register("First", "same@example.com", "pw")

    real_get_cursor = employee_module.get_cursor

    @contextmanager
    def blind_cursor(settings):
        with real_get_cursor(settings) as cursor:
            yield _BlindLookup(cursor)

    monkeypatch.setattr(employee_module, "get_cursor", blind_cursor)
    with pytest.raises(ConflictError, match=DUPLICATE_EMAIL):
        employees.register("Second", "same@example.com", "pw")
