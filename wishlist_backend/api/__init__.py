"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from wishlist_backend.api import app

    uvicorn wishlist_backend.api:app --reload
"""

from wishlist_backend.api.app import app

__all__ = ["app"]
