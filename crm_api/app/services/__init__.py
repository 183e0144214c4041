"""
Service layer.

Each service encapsulates the business logic of one domain and talks to
the SQLite store through ``core.db``.  Services are plain objects built
with the application ``Settings``; the API layer finds them on
``app.state``.
"""

from .employee_service import EmployeeService  # noqa: F401
from .enquiry_service import EnquiryService  # noqa: F401
