"""Tests for rebuilds/service.py module."""

import asyncio
from unittest.mock import MagicMock

import pytest
import semver
from sqlalchemy.exc import OperationalError

from cratedocs.errors import (
    AlreadyQueuedError,
    StorageError,
    SubmissionError,
    UnauthorizedError,
    VersionNotFoundError,
)
from cratedocs.queue.pool import BlockingPool
from cratedocs.queue.service import BuildQueue
from cratedocs.rebuilds.service import (
    INVALID_TOKEN,
    MISSING_TOKEN,
    NOT_CONFIGURED,
    TRIGGERED_REBUILD_PRIORITY,
    authorize_rebuild,
    check_rebuild_target,
    ensure_not_queued,
    parse_bearer_token,
    submit_rebuild,
    trigger_rebuild,
)


@pytest.fixture
def queue(session_factory):
    """Create a build queue on the test database."""
    return BuildQueue(session_factory)


@pytest.fixture
def pool():
    """Create a worker pool for the test."""
    pool = BlockingPool(max_workers=2)
    yield pool
    pool.shutdown()


class TestParseBearerToken:
    """Tests for parse_bearer_token function."""

    def test_bearer(self):
        """The token after 'Bearer' is extracted."""
        assert parse_bearer_token("Bearer foo137") == "foo137"
        assert parse_bearer_token("bearer foo137") == "foo137"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic Zm9vOmJhcg=="])
    def test_missing(self, header):
        """Absent, empty or non-bearer headers carry no token."""
        assert parse_bearer_token(header) is None


class TestAuthorizeRebuild:
    """Tests for authorize_rebuild function."""

    def test_not_configured(self):
        """Without a configured secret every call fails."""
        for token in (None, "anything"):
            with pytest.raises(UnauthorizedError) as exc_info:
                authorize_rebuild(None, token)
            assert exc_info.value.reason == NOT_CONFIGURED

    def test_missing_token(self):
        """A missing token is reported as such."""
        with pytest.raises(UnauthorizedError) as exc_info:
            authorize_rebuild("secret", None)
        assert exc_info.value.reason == MISSING_TOKEN

    def test_invalid_token(self):
        """A wrong token is reported as invalid."""
        with pytest.raises(UnauthorizedError) as exc_info:
            authorize_rebuild("secret", "secreT")
        assert exc_info.value.reason == INVALID_TOKEN

    def test_valid_token(self):
        """The matching token passes without side effects."""
        assert authorize_rebuild("secret", "secret") is None


class TestCheckRebuildTarget:
    """Tests for the dedup gate."""

    def test_unknown_release(self, session, queue, pool):
        """A release missing from the catalog is not found."""
        with pytest.raises(VersionNotFoundError):
            asyncio.run(
                check_rebuild_target(
                    session, queue, pool, "foo", semver.Version.parse("0.1.0")
                )
            )

    def test_already_queued(self, session, queue, pool, make_release):
        """A pending build blocks another one."""
        make_release("foo", "0.1.0")
        queue.add_crate("foo", "0.1.0")

        with pytest.raises(AlreadyQueuedError) as exc_info:
            asyncio.run(
                check_rebuild_target(
                    session, queue, pool, "foo", semver.Version.parse("0.1.0")
                )
            )
        assert str(exc_info.value) == "crate foo 0.1.0 already queued for rebuild"

    def test_passes(self, session, queue, pool, make_release):
        """An existing, unqueued release passes (even without builds)."""
        make_release("foo", "0.1.0", builds=[])
        asyncio.run(
            check_rebuild_target(
                session, queue, pool, "foo", semver.Version.parse("0.1.0")
            )
        )

    def test_queue_failure(self):
        """Queue errors during the check surface as StorageError."""
        queue = MagicMock()
        queue.has_build_queued.side_effect = OperationalError("SELECT", {}, Exception())
        with pytest.raises(StorageError):
            ensure_not_queued(queue, "foo", "0.1.0")


class TestSubmitRebuild:
    """Tests for submit_rebuild function."""

    def test_submits_at_triggered_priority(self, queue):
        """Rebuilds are queued at the fixed priority with no registry."""
        submit_rebuild(queue, "foo", "0.1.0")

        [entry] = queue.queued_crates()
        assert entry.priority == TRIGGERED_REBUILD_PRIORITY == 5
        assert entry.registry is None

    def test_queue_failure(self):
        """Queue errors surface as SubmissionError."""
        queue = MagicMock()
        queue.add_crate.side_effect = OperationalError("INSERT", {}, Exception())
        with pytest.raises(SubmissionError):
            submit_rebuild(queue, "foo", "0.1.0")


class TestTriggerRebuild:
    """Tests for the complete rebuild flow."""

    def _trigger(self, session, queue, pool, token="secret", version="0.1.0"):
        return asyncio.run(
            trigger_rebuild(
                session=session,
                queue=queue,
                pool=pool,
                expected_token="secret",
                token=token,
                name="foo",
                version=version,
            )
        )

    def test_queues_once(self, session, queue, pool, make_release):
        """A valid request queues; a repeat is rejected."""
        make_release("foo", "0.1.0")

        self._trigger(session, queue, pool)
        assert queue.pending_count() == 1
        assert queue.has_build_queued("foo", "0.1.0")

        with pytest.raises(AlreadyQueuedError):
            self._trigger(session, queue, pool)
        assert queue.pending_count() == 1

    def test_auth_checked_first(self, session, queue, pool):
        """Authorization fails before the catalog is consulted."""
        with pytest.raises(UnauthorizedError):
            self._trigger(session, queue, pool, token="wrong", version="0,1,0")

    def test_malformed_version(self, session, queue, pool, make_release):
        """A version that is not exact semver is not found."""
        make_release("foo", "0.1.0")
        with pytest.raises(VersionNotFoundError):
            self._trigger(session, queue, pool, version="0.1")
        assert queue.pending_count() == 0
