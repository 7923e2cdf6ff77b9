"""FastAPI web application for cratedocs.

This module provides the HTTP surface for crate build history and
rebuild triggers. All business logic is delegated to the core
modules in cratedocs/.
"""

from web.app import app, create_app

__all__ = ["app", "create_app"]
