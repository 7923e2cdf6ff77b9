"""HTTP cache policies.

Every crate route picks one policy; apply_cache_policy() turns it into
a Cache-Control header.
"""

from __future__ import annotations

from enum import Enum

from fastapi.responses import RedirectResponse
from starlette.responses import Response

from cratedocs.config import Settings


class CachePolicy(str, Enum):
    """Caching behaviour for a response."""

    # Browsers and the CDN revalidate on every request
    NO_CACHING = "no-caching"
    # Nobody may store the response at all
    NO_STORE_MUST_REVALIDATE = "no-store-must-revalidate"
    # The CDN may keep the response until it is purged
    FOREVER_IN_CDN = "forever-in-cdn"

    def header_value(self, settings: Settings) -> str:
        """Render the Cache-Control value for this policy."""
        if self is CachePolicy.NO_CACHING:
            return "max-age=0"
        if self is CachePolicy.NO_STORE_MUST_REVALIDATE:
            return "no-cache, no-store, must-revalidate, max-age=0"
        return f"public, max-age=0, s-maxage={settings.cdn_max_age}"


def apply_cache_policy(
    response: Response, policy: CachePolicy, settings: Settings
) -> Response:
    """Set the Cache-Control header of ``response`` and return it."""
    response.headers["Cache-Control"] = policy.header_value(settings)
    return response


def cached_redirect(url: str, settings: Settings) -> RedirectResponse:
    """Redirect to an immutable URL; the CDN may cache it forever."""
    response = RedirectResponse(url=url, status_code=302)
    apply_cache_policy(response, CachePolicy.FOREVER_IN_CDN, settings)
    return response


__all__ = ["CachePolicy", "apply_cache_policy", "cached_redirect"]
