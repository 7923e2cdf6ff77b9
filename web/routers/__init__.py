"""Router modules for FastAPI web API."""

from web.routers import crates, health

__all__ = ["crates", "health"]
