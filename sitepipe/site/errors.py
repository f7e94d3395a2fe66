"""Error types for site construction and builds.

Construction failures surface as ``ConfigurationError``. Fatal build failures
surface as a single ``BuildError`` naming the phase, chained to the phase
error that caused it. Renderer failures never escape a build; they are
recorded on the result instead.
"""


class SiteError(Exception):
    """Base exception for all site errors."""


class ConfigurationError(SiteError):
    """Raised when a configuration step fails during site construction."""

    def __init__(self, step: str, cause: BaseException) -> None:
        """Initialize the configuration error.

        Args:
            step: Name of the configuration step that failed.
            cause: The exception raised by the step.
        """
        self.step = step
        self.cause = cause
        super().__init__(f"configure {step}: {cause}")


class BuildError(SiteError):
    """Raised when a fatal build phase fails.

    Attributes:
        phase: Human-readable phase name (e.g. ``"run commands"``).
        cause: The underlying phase error.
    """

    def __init__(self, phase: str, cause: BaseException) -> None:
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase}: {cause}")


class BuildCancelledError(SiteError):
    """Raised when the build context was cancelled."""

    def __init__(self, message: str = "build cancelled") -> None:
        super().__init__(message)


class CommandError(SiteError):
    """Raised when a build command cannot be spawned or exits non-zero."""

    def __init__(
        self,
        command: str,
        returncode: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize the command error.

        Args:
            command: The shell command string that failed.
            returncode: Exit status, if the process ran to completion.
            reason: Description when there is no exit status (spawn failure,
                cancellation, timeout).
        """
        self.command = command
        self.returncode = returncode
        self.reason = reason
        if reason is None:
            reason = f"exit status {returncode}"
        super().__init__(f"{command!r}: {reason}")


class AssetError(SiteError):
    """Raised when an asset cannot be read, hashed or written."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class PublicCopyError(SiteError):
    """Raised when a public file cannot be mirrored into the output tree."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class AssetNotFoundError(SiteError, LookupError):
    """Raised when a logical asset name has no fingerprinted entry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"asset {name!r} not found")
