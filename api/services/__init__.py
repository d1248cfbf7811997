"""
API Services Layer.

Database operations behind the API endpoints. Every function takes the
request's session; tenant checks go through ``core.middleware.authorization``
and multi-row writes run inside ``database.engine.atomic``.
"""

from api.services import auth, candidates, companies, departments, positions, users

__all__ = [
    "auth",
    "candidates",
    "companies",
    "departments",
    "positions",
    "users",
]
