"""
Enquiry endpoints.

``POST /public`` is open to anonymous visitors.  Everything else
requires a bearer token; the resolved employee id is injected by
``get_current_employee_id`` and scopes the private listing and claims
to the caller.
"""

from fastapi import APIRouter, Depends, Request, status

from crm_api.app.core.security import get_current_employee_id
from crm_api.app.schemas.enquiry import (
    ClaimResult,
    EnquiryCreate,
    EnquiryList,
    EnquirySubmitted,
)


router = APIRouter()


@router.post("/public", response_model=EnquirySubmitted, status_code=status.HTTP_201_CREATED)
def submit_enquiry(payload: EnquiryCreate, request: Request) -> EnquirySubmitted:
    """Submit an enquiry as a prospective student."""
    receipt = request.app.state.enquiry_service.submit(
        payload.name, payload.email, payload.course_interest
    )
    return EnquirySubmitted(
        message="Thanks! Someone will get back to you shortly.",
        enquiry=receipt,
    )


@router.get("/public", response_model=EnquiryList)
def list_public_enquiries(
    request: Request,
    employee_id: int = Depends(get_current_employee_id),
) -> EnquiryList:
    """List the shared pool of unclaimed enquiries, newest first."""
    return EnquiryList(enquiries=request.app.state.enquiry_service.list_unclaimed())


@router.get("/private", response_model=EnquiryList)
def list_private_enquiries(
    request: Request,
    employee_id: int = Depends(get_current_employee_id),
) -> EnquiryList:
    """List the enquiries claimed by the caller."""
    return EnquiryList(enquiries=request.app.state.enquiry_service.list_owned(employee_id))


@router.patch("/{enquiry_id}/claim", response_model=ClaimResult)
def claim_enquiry(
    enquiry_id: str,
    request: Request,
    employee_id: int = Depends(get_current_employee_id),
) -> ClaimResult:
    """Claim an enquiry for the caller.

    Returns 409 when another employee got there first and 200 with an
    "already claimed by you" message when the caller already owns it.
    """
    return request.app.state.enquiry_service.claim(enquiry_id, employee_id)
