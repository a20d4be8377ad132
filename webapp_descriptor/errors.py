from __future__ import annotations


class DescriptorError(Exception):
    """Base exception for this project."""


class MalformedDescriptorError(DescriptorError):
    """Raised when the descriptor is not well-formed markup."""


class ValidationError(DescriptorError):
    """Raised when well-formed markup violates a descriptor content rule."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        conflicts: tuple[str, ...] = (),
    ):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
        self.conflicts = conflicts


class SettingsError(DescriptorError):
    """Raised when parser settings are invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
