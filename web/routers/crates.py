"""Crate build endpoints.

- GET /crate/{name}/{version}/builds - HTML build history
- GET /crate/{name}/{version}/builds.json - JSON build history
- POST /crate/{name}/{version}/rebuild - Queue a rebuild (bearer token)

Non-canonical versions (and misspelled crate names) on the listing routes
redirect to the canonical URL.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Header, Request
from fastapi import status as http_status
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from cratedocs.builds.store import fetch_builds
from cratedocs.builds.views import CrateMetadata, project_api, project_page
from cratedocs.errors import CratedocsError, StorageError, VersionNotFoundError
from cratedocs.rebuilds.service import parse_bearer_token, trigger_rebuild
from cratedocs.releases.service import VersionRedirect, resolve_version
from web.cache import CachePolicy, apply_cache_policy, cached_redirect
from web.deps import AppSettings, DbSession, Pool, Queue
from web.errors import error_to_json

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")


def _not_found_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request=request,
        name="not_found.html",
        status_code=http_status.HTTP_404_NOT_FOUND,
    )


def _server_error() -> PlainTextResponse:
    return PlainTextResponse(
        "internal server error",
        status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@router.get("/{name}/{version}/builds", response_class=HTMLResponse)
def build_list(
    request: Request,
    name: str,
    version: str,
    db: DbSession,
    settings: AppSettings,
) -> Response:
    """Render the build history page of a release."""
    try:
        resolved = resolve_version(db, name, version)
    except VersionNotFoundError:
        return _not_found_page(request)
    except StorageError:
        return _server_error()
    if isinstance(resolved, VersionRedirect):
        return cached_redirect(resolved.path("builds"), settings)

    try:
        builds = fetch_builds(db, resolved.name, resolved.version)
    except StorageError:
        return _server_error()

    page = project_page(
        CrateMetadata(
            name=resolved.name,
            version=str(resolved.version),
            req_version=str(resolved.req_version),
            description=resolved.description,
        ),
        builds,
    )
    response = templates.TemplateResponse(
        request=request,
        name=page.template,
        context={"page": page},
    )
    return apply_cache_policy(response, CachePolicy.NO_CACHING, settings)


@router.get("/{name}/{version}/builds.json")
def build_list_json(
    name: str,
    version: str,
    db: DbSession,
    settings: AppSettings,
) -> Response:
    """Return the build history of a release as JSON.

    In-progress builds are never listed and build_status is a boolean.
    """
    try:
        resolved = resolve_version(db, name, version)
    except (StorageError, VersionNotFoundError) as e:
        return error_to_json(e)
    if isinstance(resolved, VersionRedirect):
        return cached_redirect(resolved.path("builds.json"), settings)

    try:
        builds = fetch_builds(db, resolved.name, resolved.version)
    except StorageError as e:
        return error_to_json(e)

    response = JSONResponse(
        content=project_api(builds),
        headers={"Access-Control-Allow-Origin": "*"},
    )
    return apply_cache_policy(response, CachePolicy.NO_STORE_MUST_REVALIDATE, settings)


@router.post("/{name}/{version}/rebuild", status_code=http_status.HTTP_201_CREATED)
async def build_trigger_rebuild(
    name: str,
    version: str,
    db: DbSession,
    settings: AppSettings,
    queue: Queue,
    pool: Pool,
    authorization: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """Queue a rebuild of an exact release.

    Requires ``Authorization: Bearer <token>`` matching the configured
    rebuild token.
    """
    try:
        await trigger_rebuild(
            session=db,
            queue=queue,
            pool=pool,
            expected_token=settings.cratesio_token,
            token=parse_bearer_token(authorization),
            name=name,
            version=version,
        )
    except CratedocsError as e:
        return error_to_json(e)

    return JSONResponse(status_code=http_status.HTTP_201_CREATED, content={})
