"""CRM API client.

A thin wrapper around the CRM HTTP API built on the ``requests``
library.  It is used by the live smoke test and is handy for scripting
against a deployed instance.

The client exposes one method per operation:

* :meth:`register` – create an employee account.
* :meth:`login` – obtain a bearer token; the token is remembered and
  sent with every later request.
* :meth:`submit_enquiry` – submit an enquiry anonymously.
* :meth:`list_public` – list unclaimed enquiries.
* :meth:`list_private` – list the enquiries claimed by the logged in
  employee.
* :meth:`claim` – claim an enquiry.

Every method returns a tuple ``(data, error)``.  On success ``error`` is
``None``; on failure ``data`` is ``None`` and ``error`` is a dictionary
with keys ``status_code`` and ``message``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class CRMClient:
    """Client for the CRM API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the deployment, e.g. ``https://crm.example.com``.
            token: Optional bearer token to start with.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helper
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, *, json_body: Any | None = None) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``).
            path: Path relative to :attr:`base_url` (e.g. ``/api/enquiries/public``).
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)``.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    message = exc.response.json().get("message", "")
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------
    def register(self, name: str, email: str, password: str) -> Result:
        """Register an employee; returns ``{id, name, email}``."""
        return self._request(
            "POST",
            "/api/employees/register",
            json_body={"name": name, "email": email, "password": password},
        )

    def login(self, email: str, password: str) -> Result:
        """Log in and remember the returned token."""
        data, error = self._request(
            "POST",
            "/api/employees/login",
            json_body={"email": email, "password": password},
        )
        if data and data.get("token"):
            self.token = data["token"]
        return data, error

    # ------------------------------------------------------------------
    # Enquiries
    # ------------------------------------------------------------------
    def submit_enquiry(
        self, name: str, email: str, course_interest: Optional[str] = None
    ) -> Result:
        """Submit an enquiry; returns ``{message, enquiry: {id, createdAt}}``."""
        body: Dict[str, Any] = {"name": name, "email": email}
        if course_interest is not None:
            body["courseInterest"] = course_interest
        return self._request("POST", "/api/enquiries/public", json_body=body)

    def _list(self, path: str) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self._request("GET", path)
        if error:
            return [], error
        return (data or {}).get("enquiries", []), None

    def list_public(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        return self._list("/api/enquiries/public")

    def list_private(self) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        return self._list("/api/enquiries/private")

    def claim(self, enquiry_id: Any) -> Result:
        """Claim an enquiry; returns ``{message, enquiry}``."""
        return self._request("PATCH", f"/api/enquiries/{enquiry_id}/claim")
