"""
Pydantic schemas for enquiries.

The JSON representation uses camelCase keys (``courseInterest``,
``counselorId``, ``createdAt``, ``updatedAt``) while the Python
attributes and the database columns use snake_case.  Both spellings are
accepted on input.

Timestamps are represented as ``str`` because SQLite returns the stored
ISO‑8601 strings unchanged.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class EnquiryCreate(BaseModel):
    """Payload of an anonymous enquiry submission."""

    name: Optional[str] = Field(None, examples=["Taylor Prospect"])
    email: Optional[str] = Field(None, examples=["taylor@example.com"])
    course_interest: Optional[str] = Field(
        None, alias="courseInterest", examples=["Data Science"]
    )

    model_config = {"populate_by_name": True}


class EnquiryRead(BaseModel):
    """Full enquiry as shown to authenticated employees."""

    id: int
    name: str
    email: str
    course_interest: Optional[str] = Field(None, alias="courseInterest")
    claimed: bool = False
    counselor_id: Optional[int] = Field(None, alias="counselorId")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")

    model_config = {"populate_by_name": True}


class EnquiryReceipt(BaseModel):
    """What the anonymous submitter gets back."""

    id: int
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class EnquirySubmitted(BaseModel):
    message: str
    enquiry: EnquiryReceipt


class EnquiryList(BaseModel):
    enquiries: List[EnquiryRead]


class ClaimResult(BaseModel):
    message: str
    enquiry: EnquiryRead
