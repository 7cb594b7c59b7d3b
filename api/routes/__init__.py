"""API Routes Package."""

from api.routes import health, imports, attendance

__all__ = [
    "health",
    "imports",
    "attendance",
]
