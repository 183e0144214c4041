"""
Application package.

Contains the FastAPI application factory (``main.create_app``) and its
submodules: ``core`` (configuration, logging, errors, database and
security primitives), ``schemas``, ``services`` and ``api``.
"""

from .main import create_app  # noqa: F401
