"""Release catalog module.

This module handles:
- Crate and release ORM records
- Parsing URL version specifiers (latest, exact, semver requirements)
- Matching specifiers to releases and canonical-URL redirects
"""

from cratedocs.releases.models import Crate, Release

__all__ = ["Crate", "Release"]
