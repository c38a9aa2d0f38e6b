"""Exceptions raised by the sandbox components."""


class SandboxError(Exception):
    """Base exception for sandbox errors."""

    pass


class ValidationError(SandboxError):
    """The request is malformed, too large, or names an unsupported language."""

    pass


class StagingError(SandboxError):
    """The workspace could not be created or written."""

    pass


class LaunchError(SandboxError):
    """The interpreter process could not be started."""

    pass
