"""
Top‑level API router.

Aggregates the domain routers under their prefixes.  The application
mounts this router under ``/api``.
"""

from fastapi import APIRouter

from .endpoints import employees, enquiries


router = APIRouter()

router.include_router(employees.router, prefix="/employees", tags=["employees"])
router.include_router(enquiries.router, prefix="/enquiries", tags=["enquiries"])
