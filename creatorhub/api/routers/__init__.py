"""API routers for CreatorHub."""

from . import authz

__all__ = [
    "authz",
]
