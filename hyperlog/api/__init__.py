"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from hyperlog.api import app

    uvicorn hyperlog.api:app --reload
"""

from hyperlog.api.app import app, create_app

__all__ = ["app", "create_app"]
