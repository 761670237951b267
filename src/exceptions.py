"""Central application exception hierarchy.

This module defines the base application exception ``AppError`` and the
specialized subclasses used throughout the documentation rewriter to
represent its failure modes: invalid input paths, non-directory roots,
filesystem read/write failures, transformation failures and the external
service conditions the HTTP transformer reports. Using a centralized
hierarchy keeps error handling and testing consistent.

Per-file errors (``FileIOError``, ``TransformationError`` and its
subclasses) are converted into outcomes at the file's own pipeline boundary.
Only ``InvalidPathError`` and ``DirectoryError`` propagate out of the entry
points.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping


class AppError(Exception):
    """Base exception for all application-level errors.

    Parameters
    ----------
    code : str
        Machine-readable error code (e.g., ``'INVALID_PATH_ERROR'``).
    message : str
        Human-readable message describing the error.
    context : Mapping[str, Any] | None, optional
        Optional structured context for logging.
    transient : bool, optional
        Whether the error is temporary and may be retried.

    Attributes
    ----------
    code : str
        Stable machine-readable error code.
    message : str
        Human-readable message.
    context : dict
        Structured, non-sensitive context for logging.
    transient : bool
        True if the error is transient.

    Examples
    --------
    >>> e = AppError('CODE', 'message', context={'k': 'v'}, transient=True)
    >>> e.code
    'CODE'
    """

    __slots__ = ("code", "message", "context", "transient")

    def __init__(
        self,
        code: str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context or {})
        self.transient = bool(transient)

    def __str__(self) -> str:
        """Return a compact string representation of the error."""
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a log-safe dictionary representation of the error."""
        return {
            "error_code": self.code,
            "message": self.message,
            "context": self.context,
            "is_transient": self.transient,
        }


class ConfigurationError(AppError):
    """Raised for invalid or missing configuration."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "CONFIGURATION_ERROR", message, context=context, transient=False
        )


class InvalidPathError(AppError):
    """Raised when a single-file entry point receives a path of the wrong type.

    The check is made against the configured source suffix before any
    filesystem access takes place.
    """

    __slots__ = ("path",)

    def __init__(self, path: Path | str) -> None:
        super().__init__(
            "INVALID_PATH_ERROR",
            f"The given path : {path} does not lead to a source file.",
            context={"path": str(path)},
            transient=False,
        )
        self.path = Path(path)


class DirectoryError(AppError):
    """Raised when a directory entry point's root is not a directory."""

    __slots__ = ("path",)

    def __init__(self, path: Path | str) -> None:
        super().__init__(
            "NOT_A_DIRECTORY_ERROR",
            f"Path is not a directory: {path}",
            context={"path": str(path)},
            transient=False,
        )
        self.path = Path(path)


class FileIOError(AppError):
    """Raised when reading, writing or moving a file fails."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__("FILE_IO_ERROR", message, context=context, transient=False)


class TransformationError(AppError):
    """Raised when the transformer fails or returns an unusable result.

    Subclasses narrow the cause for the HTTP transformer; the pipeline only
    relies on this base class.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = False,
        code: str = "TRANSFORMATION_ERROR",
    ) -> None:
        super().__init__(code, message, context=context, transient=transient)


class APIRateLimitError(TransformationError):
    """Raised when an external API keeps indicating a rate limit condition."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            message, context=context, transient=True, code="API_RATE_LIMIT_ERROR"
        )


class RetryExhaustedError(TransformationError):
    """Raised when retry attempts for a transient error have been exhausted."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            message, context=context, transient=False, code="RETRY_EXHAUSTED_ERROR"
        )


class TimeoutExceededError(TransformationError):
    """Raised when a configured timeout or deadline is exceeded."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            message, context=context, transient=True, code="TIMEOUT_EXCEEDED_ERROR"
        )


class ExternalServiceError(TransformationError):
    """Raised for unexpected failures from an external service."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=context,
            transient=transient,
            code="EXTERNAL_SERVICE_ERROR",
        )
