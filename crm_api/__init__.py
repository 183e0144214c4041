"""
Top‑level package for the CRM API.

All functionality lives in submodules under ``app``; import the
application factory as ``crm_api.app.create_app``.
"""

__all__ = []
