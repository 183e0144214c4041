"""
Pydantic models for employee data.

Request fields are optional on purpose: missing values are reported by
``EmployeeService`` as a 400 with a readable message instead of
FastAPI's generic 422.  Passwords never appear in any response model.
"""

from typing import Optional

from pydantic import BaseModel, Field


class EmployeeRegister(BaseModel):
    """Registration payload."""

    name: Optional[str] = Field(None, examples=["Casey Counselor"])
    email: Optional[str] = Field(None, examples=["casey@example.com"])
    password: Optional[str] = Field(None, examples=["example-password"])


class EmployeeLogin(BaseModel):
    email: Optional[str] = Field(None, examples=["casey@example.com"])
    password: Optional[str] = Field(None, examples=["example-password"])


class EmployeeSummary(BaseModel):
    """Public view of an employee."""

    id: int
    name: str
    email: str


class LoginResult(BaseModel):
    token: str
    employee: EmployeeSummary
