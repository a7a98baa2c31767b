"""
App assembly entry point.

Re-exports the FastAPI `app` from `truedope.api.main` for `uvicorn app:app`.
"""

from truedope.api.main import app  # noqa: F401
