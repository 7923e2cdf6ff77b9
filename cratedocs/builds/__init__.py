"""Build history module.

This module handles:
- Build ORM records
- Ordered, filtered build history queries
- Page and JSON API projections of build history
"""

from cratedocs.builds.models import Build

__all__ = ["Build"]

# Access submodules via cratedocs.builds.store and cratedocs.builds.views
