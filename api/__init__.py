"""API Package.

FastAPI server for the attendance import service.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
