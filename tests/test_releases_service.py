"""Tests for releases/service.py module.

Tests version matching, canonical redirects and existence checks against
a SQLite database.
"""

from unittest.mock import patch

import pytest
import semver
from sqlalchemy.exc import OperationalError

from cratedocs.errors import (
    CrateNameMismatchError,
    StorageError,
    VersionNotFoundError,
)
from cratedocs.releases.service import (
    MatchedRelease,
    VersionRedirect,
    match_version,
    normalize_crate_name,
    release_exists,
    resolve_version,
)
from cratedocs.releases.version import ReqVersion
from cratedocs.types import BuildStatus


@pytest.fixture
def aquarelle(make_release):
    """A crate with two built releases."""
    make_release("aquarelle", "0.1.0", description="first")
    make_release("aquarelle", "0.2.0", description="second")


class TestMatchVersion:
    """Tests for match_version function."""

    def test_exact(self, session, aquarelle):
        """An exact version matches that release."""
        matched = match_version(session, "aquarelle", "0.1.0")
        assert matched.version == semver.Version.parse("0.1.0")
        assert matched.is_latest is False
        assert matched.corrected_name is None
        assert matched.description == "first"

    def test_latest(self, session, aquarelle):
        """'latest' matches the highest release."""
        matched = match_version(session, "aquarelle", "latest")
        assert str(matched.version) == "0.2.0"
        assert matched.is_latest is True

    def test_requirement(self, session, aquarelle):
        """A requirement matches the highest satisfying release."""
        matched = match_version(session, "aquarelle", "0.1")
        assert str(matched.version) == "0.1.0"

    def test_latest_skips_yanked_and_prereleases(self, session, make_release):
        """'latest' prefers non-yanked, non-prerelease releases."""
        make_release("foo", "1.0.0")
        make_release("foo", "1.1.0", yanked=True)
        make_release("foo", "2.0.0-alpha.1")

        matched = match_version(session, "foo", "latest")
        assert str(matched.version) == "1.0.0"

    def test_latest_falls_back_to_yanked(self, session, make_release):
        """With only yanked releases, 'latest' still finds one."""
        make_release("foo", "1.0.0", yanked=True)
        assert str(match_version(session, "foo", "latest").version) == "1.0.0"

    def test_requirement_prefers_non_yanked(self, session, make_release):
        """A requirement skips yanked releases when possible."""
        make_release("foo", "1.0.0")
        make_release("foo", "1.1.0", yanked=True)
        assert str(match_version(session, "foo", "^1").version) == "1.0.0"
        assert str(match_version(session, "foo", "=1.1").version) == "1.1.0"

    def test_unknown_crate(self, session, aquarelle):
        """An unknown crate is not found."""
        with pytest.raises(VersionNotFoundError):
            match_version(session, "nope", "latest")

    def test_unknown_version(self, session, aquarelle):
        """A version that was never released is not found."""
        with pytest.raises(VersionNotFoundError):
            match_version(session, "aquarelle", "0.3.0")

    def test_malformed_version(self, session, aquarelle):
        """A malformed specifier is not found rather than an error."""
        with pytest.raises(VersionNotFoundError):
            match_version(session, "aquarelle", "0,1,0")
        with pytest.raises(VersionNotFoundError):
            match_version(session, "aquarelle", "not-a-version")

    def test_catalog_failure(self, session, aquarelle):
        """Database errors surface as StorageError."""
        with patch.object(
            session,
            "execute",
            side_effect=OperationalError("SELECT", {}, Exception("locked")),
        ), pytest.raises(StorageError):
            match_version(session, "aquarelle", "latest")

    def test_release_without_builds_is_not_found(self, session, make_release):
        """Releases with no finished build are invisible."""
        make_release("foo", "0.1.0", builds=[])
        make_release(
            "foo", "0.2.0", builds=[{"build_status": BuildStatus.IN_PROGRESS.value}]
        )

        with pytest.raises(VersionNotFoundError):
            match_version(session, "foo", "0.1.0")
        with pytest.raises(VersionNotFoundError):
            match_version(session, "foo", "latest")

    def test_failed_build_counts_as_built(self, session, make_release):
        """A failed build still makes the release visible."""
        make_release(
            "foo", "0.1.0", builds=[{"build_status": BuildStatus.FAILURE.value}]
        )
        assert str(match_version(session, "foo", "0.1.0").version) == "0.1.0"

    def test_corrected_name(self, session, make_release):
        """Case and -/_ differences are matched and reported."""
        make_release("serde_json", "1.0.0")

        matched = match_version(session, "Serde-JSON", "1.0.0")
        assert matched.corrected_name == "serde_json"
        with pytest.raises(CrateNameMismatchError) as exc_info:
            matched.assume_exact_name()
        assert exc_info.value.corrected == "serde_json"


class TestCanonicalReqVersion:
    """Tests for MatchedRelease.canonical_req_version."""

    def _matched(self, req: str, is_latest: bool) -> MatchedRelease:
        return MatchedRelease(
            name="foo",
            corrected_name=None,
            req_version=ReqVersion.parse(req),
            version=semver.Version.parse("0.1.0"),
            is_latest=is_latest,
        )

    def test_latest_and_exact_are_kept(self):
        """Canonical specifiers stay as they are."""
        assert str(self._matched("latest", True).canonical_req_version()) == "latest"
        assert str(self._matched("0.1.0", True).canonical_req_version()) == "0.1.0"

    def test_requirement_becomes_latest(self):
        """A requirement resolving to the latest release becomes 'latest'."""
        assert str(self._matched("0.1", True).canonical_req_version()) == "latest"

    def test_requirement_becomes_exact(self):
        """Otherwise a requirement becomes the exact version."""
        assert str(self._matched("0.1", False).canonical_req_version()) == "0.1.0"


class TestResolveVersion:
    """Tests for resolve_version function."""

    def test_canonical_is_served(self, session, aquarelle):
        """Canonical requests resolve without redirect."""
        assert isinstance(resolve_version(session, "aquarelle", "latest"), MatchedRelease)
        assert isinstance(resolve_version(session, "aquarelle", "0.1.0"), MatchedRelease)

    def test_requirement_redirects_to_latest(self, session, aquarelle):
        """A requirement hitting the latest release redirects to 'latest'."""
        result = resolve_version(session, "aquarelle", "0.2")
        assert isinstance(result, VersionRedirect)
        assert result.path("builds") == "/crate/aquarelle/latest/builds"

    def test_requirement_redirects_to_exact(self, session, aquarelle):
        """Other requirements redirect to the exact version."""
        result = resolve_version(session, "aquarelle", "0.1")
        assert isinstance(result, VersionRedirect)
        assert result.path("builds.json") == "/crate/aquarelle/0.1.0/builds.json"

    def test_star_redirects_to_latest(self, session, aquarelle):
        """'*' and 'newest' redirect to 'latest'."""
        for req in ("*", "newest"):
            result = resolve_version(session, "aquarelle", req)
            assert isinstance(result, VersionRedirect)
            assert str(result.req_version) == "latest"

    def test_corrected_name_redirects(self, session, make_release):
        """A misspelled crate name redirects to the stored name."""
        make_release("serde_json", "1.0.0")
        result = resolve_version(session, "serde-json", "1.0.0")
        assert isinstance(result, VersionRedirect)
        assert result.path("builds") == "/crate/serde_json/1.0.0/builds"


class TestReleaseExists:
    """Tests for release_exists function."""

    def test_exists(self, session, make_release):
        """Existing releases are found even without builds."""
        make_release("foo", "0.1.0", builds=[])
        assert release_exists(session, "foo", "0.1.0") is True

    def test_missing(self, session, make_release):
        """Unknown versions and crates are not found."""
        make_release("foo", "0.1.0")
        assert release_exists(session, "foo", "0.2.0") is False
        assert release_exists(session, "bar", "0.1.0") is False


def test_normalize_crate_name():
    """Normalization lowercases and unifies '-' and '_'."""
    assert normalize_crate_name("Serde_JSON") == "serde-json"
