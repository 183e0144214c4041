"""
Employee endpoints.

Registration and login.  Neither route requires a token; login is how
one is obtained.
"""

from fastapi import APIRouter, Request, status

from crm_api.app.schemas.employee import (
    EmployeeLogin,
    EmployeeRegister,
    EmployeeSummary,
    LoginResult,
)


router = APIRouter()


@router.post("/register", response_model=EmployeeSummary, status_code=status.HTTP_201_CREATED)
def register_employee(payload: EmployeeRegister, request: Request) -> EmployeeSummary:
    """Register a new employee.

    Returns the id, name and email of the created account; the client
    calls ``/login`` afterwards to obtain a token.
    """
    return request.app.state.employee_service.register(
        payload.name, payload.email, payload.password
    )


@router.post("/login", response_model=LoginResult)
def login_employee(payload: EmployeeLogin, request: Request) -> LoginResult:
    """Authenticate an employee and return a bearer token."""
    return request.app.state.employee_service.login(payload.email, payload.password)
