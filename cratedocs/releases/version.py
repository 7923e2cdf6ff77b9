"""Version specifiers used in crate URLs.

A URL version segment is one of:

- ``latest``: the newest release of the crate,
- an exact semver version such as ``1.2.3`` or ``0.1.0-alpha.1``,
- a Cargo-style version requirement such as ``0.1``, ``^1.2``,
  ``~1.2.3``, ``>=1, <2`` or ``*`` (``newest`` and the empty string
  are aliases for ``*``).

Requirement matching follows Cargo: a bare version means ``^``, and
prerelease versions only match comparators that name a prerelease on
the same major.minor.patch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import semver

LATEST = "latest"

_COMPARATOR_RE = re.compile(
    r"""
    ^\s*
    (?P<op>>=|<=|>|<|=|~|\^)?\s*
    (?P<major>\d+|\*|x|X)
    (?:\.(?P<minor>\d+|\*|x|X))?
    (?:\.(?P<patch>\d+|\*|x|X))?
    (?:-(?P<pre>[0-9A-Za-z.-]+))?
    (?:\+[0-9A-Za-z.-]+)?
    \s*$
    """,
    re.VERBOSE,
)

_WILDCARDS = frozenset({"*", "x", "X"})


class InvalidVersionReq(ValueError):
    """Raised when a version specifier cannot be parsed."""


def _pre_key(pre: str | None) -> semver.Version:
    # A missing prerelease sorts above any prerelease
    return semver.Version(0, 0, 0, prerelease=pre or None)


@dataclass(frozen=True)
class Comparator:
    """A single requirement term such as ``^1.2`` or ``<2.0.0``."""

    op: str
    major: int | None
    minor: int | None = None
    patch: int | None = None
    pre: str | None = None

    @classmethod
    def parse(cls, text: str) -> Comparator:
        """Parse one comparator.

        Raises:
            InvalidVersionReq: If the comparator is malformed.
        """
        match = _COMPARATOR_RE.match(text)
        if match is None:
            raise InvalidVersionReq(f"invalid comparator: {text!r}")

        op = match.group("op") or "^"
        parts: list[int | None] = []
        wildcard = False
        for key in ("major", "minor", "patch"):
            value = match.group(key)
            if value is None or value in _WILDCARDS:
                if value is not None:
                    wildcard = True
                parts.append(None)
                continue
            if wildcard or (parts and parts[-1] is None):
                raise InvalidVersionReq(f"unexpected component after wildcard: {text!r}")
            parts.append(int(value))

        pre = match.group("pre")
        if pre is not None and parts[2] is None:
            raise InvalidVersionReq(f"prerelease requires a full version: {text!r}")

        if wildcard:
            if match.group("op") not in (None, "="):
                raise InvalidVersionReq(f"wildcard with operator: {text!r}")
            op = "*" if parts[0] is None else "="

        return cls(op=op, major=parts[0], minor=parts[1], patch=parts[2], pre=pre)

    def matches(self, version: semver.Version) -> bool:
        """Check whether ``version`` satisfies this comparator."""
        if self.op == "*":
            return True
        if self.op == "=":
            return self._matches_exact(version)
        if self.op == ">":
            return self._matches_greater(version)
        if self.op == ">=":
            return self._matches_exact(version) or self._matches_greater(version)
        if self.op == "<":
            return self._matches_less(version)
        if self.op == "<=":
            return self._matches_exact(version) or self._matches_less(version)
        if self.op == "~":
            return self._matches_tilde(version)
        return self._matches_caret(version)

    def _matches_exact(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None:
            if v.patch != self.patch:
                return False
            return _pre_key(v.prerelease) == _pre_key(self.pre)
        return True

    def _matches_greater(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major > self.major  # type: ignore[operator]
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor > self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch > self.patch
        return _pre_key(v.prerelease) > _pre_key(self.pre)

    def _matches_less(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major < self.major  # type: ignore[operator]
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor < self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch < self.patch
        return _pre_key(v.prerelease) < _pre_key(self.pre)

    def _matches_tilde(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return v.patch > self.patch
        return _pre_key(v.prerelease) >= _pre_key(self.pre)

    def _matches_caret(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is None:
            return True
        if self.patch is None:
            if self.major:
                return v.minor >= self.minor
            return v.minor == self.minor

        if self.major:
            if v.minor != self.minor:
                return v.minor > self.minor
            if v.patch != self.patch:
                return v.patch > self.patch
        elif self.minor:
            if v.minor != self.minor:
                return False
            if v.patch != self.patch:
                return v.patch > self.patch
        elif v.minor != self.minor or v.patch != self.patch:
            return False

        return _pre_key(v.prerelease) >= _pre_key(self.pre)

    def allows_prerelease_of(self, v: semver.Version) -> bool:
        """Check whether this comparator opts in to prereleases of ``v``."""
        return (
            self.pre is not None
            and self.major == v.major
            and self.minor == v.minor
            and self.patch == v.patch
        )


@dataclass(frozen=True)
class VersionReq:
    """A comma-separated list of comparators that must all match."""

    comparators: tuple[Comparator, ...]
    text: str = "*"

    @classmethod
    def parse(cls, text: str) -> VersionReq:
        """Parse a Cargo-style version requirement.

        Raises:
            InvalidVersionReq: If any comparator is malformed.
        """
        stripped = text.strip()
        if not stripped:
            raise InvalidVersionReq("empty version requirement")
        comparators = tuple(Comparator.parse(part) for part in stripped.split(","))
        return cls(comparators=comparators, text=stripped)

    @classmethod
    def star(cls) -> VersionReq:
        """Return the requirement matching every version."""
        return cls(comparators=(Comparator(op="*", major=None),), text="*")

    @property
    def is_star(self) -> bool:
        """True if this requirement places no constraint."""
        return all(c.op == "*" for c in self.comparators)

    def matches(self, version: semver.Version) -> bool:
        """Check whether ``version`` satisfies every comparator."""
        if not all(c.matches(version) for c in self.comparators):
            return False
        if version.prerelease is None:
            return True
        return any(c.allows_prerelease_of(version) for c in self.comparators)

    def __str__(self) -> str:
        return self.text


class ReqVersionKind(str, Enum):
    """Kind of version specifier found in a URL."""

    LATEST = "latest"
    EXACT = "exact"
    SEMVER = "semver"


@dataclass(frozen=True)
class ReqVersion:
    """A parsed URL version specifier."""

    kind: ReqVersionKind
    exact: semver.Version | None = None
    req: VersionReq | None = None

    @classmethod
    def latest(cls) -> ReqVersion:
        return cls(kind=ReqVersionKind.LATEST)

    @classmethod
    def exact_version(cls, version: semver.Version) -> ReqVersion:
        return cls(kind=ReqVersionKind.EXACT, exact=version)

    @classmethod
    def parse(cls, text: str) -> ReqVersion:
        """Parse a URL version segment.

        Args:
            text: Raw version segment from the request path.

        Returns:
            Parsed specifier.

        Raises:
            InvalidVersionReq: If the segment is neither an alias, an exact
                version nor a valid requirement.
        """
        if text == LATEST:
            return cls.latest()
        if text in ("", "*", "newest"):
            return cls(kind=ReqVersionKind.SEMVER, req=VersionReq.star())
        try:
            return cls.exact_version(semver.Version.parse(text))
        except ValueError:
            pass
        return cls(kind=ReqVersionKind.SEMVER, req=VersionReq.parse(text))

    @property
    def is_canonical(self) -> bool:
        """Latest and exact specifiers name an immutable URL."""
        return self.kind is not ReqVersionKind.SEMVER

    def __str__(self) -> str:
        if self.kind is ReqVersionKind.LATEST:
            return LATEST
        if self.kind is ReqVersionKind.EXACT:
            return str(self.exact)
        return str(self.req)


__all__ = [
    "LATEST",
    "Comparator",
    "InvalidVersionReq",
    "ReqVersion",
    "ReqVersionKind",
    "VersionReq",
]
