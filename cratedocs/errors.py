"""Error types for cratedocs services.

Every error carries a stable ``code`` that frontends can rely on.
Service modules raise these; the web routes translate them into
HTTP responses.
"""

# Error code constants
VERSION_NOT_FOUND = "version_not_found"
CRATE_NAME_MISMATCH = "crate_name_mismatch"
UNAUTHORIZED = "unauthorized"
ALREADY_QUEUED = "already_queued"
SUBMISSION_FAILED = "submission_failed"
STORAGE_FAILURE = "storage_failure"


class CratedocsError(Exception):
    """Base error for cratedocs operations."""

    def __init__(self, message: str, code: str = "cratedocs_error") -> None:
        super().__init__(message)
        self.code = code


class VersionNotFoundError(CratedocsError):
    """Raised when a crate or version specifier matches no stored release."""

    def __init__(self, name: str, version: str) -> None:
        super().__init__(
            f"No release of {name} matches {version!r}", code=VERSION_NOT_FOUND
        )
        self.name = name
        self.version = version


class CrateNameMismatchError(CratedocsError):
    """Raised when the stored crate name is spelled differently."""

    def __init__(self, requested: str, corrected: str) -> None:
        super().__init__(
            f"Crate {requested!r} is stored as {corrected!r}",
            code=CRATE_NAME_MISMATCH,
        )
        self.requested = requested
        self.corrected = corrected


class UnauthorizedError(CratedocsError):
    """Raised when a privileged call is not authorized."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, code=UNAUTHORIZED)
        self.reason = reason


class AlreadyQueuedError(CratedocsError):
    """Raised when an equivalent rebuild is already pending."""

    def __init__(self, name: str, version: str) -> None:
        super().__init__(
            f"crate {name} {version} already queued for rebuild",
            code=ALREADY_QUEUED,
        )
        self.name = name
        self.version = version


class SubmissionError(CratedocsError):
    """Raised when the build queue rejects or fails a submission."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=SUBMISSION_FAILED)


class StorageError(CratedocsError):
    """Raised when build history or the queue cannot be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=STORAGE_FAILURE)


__all__ = [
    "ALREADY_QUEUED",
    "CRATE_NAME_MISMATCH",
    "STORAGE_FAILURE",
    "SUBMISSION_FAILED",
    "UNAUTHORIZED",
    "VERSION_NOT_FOUND",
    "AlreadyQueuedError",
    "CrateNameMismatchError",
    "CratedocsError",
    "StorageError",
    "SubmissionError",
    "UnauthorizedError",
    "VersionNotFoundError",
]
