"""Exception hierarchy shared by the resolver, the repository client and the CLI."""
from __future__ import annotations


class GoOfflineError(Exception):
    """Base class for all errors raised by this project."""


class ConfigurationError(GoOfflineError):
    """Invalid or incomplete configuration; fatal before any resolution starts."""


class ResolutionError(GoOfflineError):
    """An artifact or its descriptor could not be resolved."""

    def __init__(self, message: str, subject: str = ""):
        super().__init__(message)
        self.subject = subject


class DescriptorError(ResolutionError):
    """A dependency descriptor is missing or malformed."""


class ArtifactNotFoundError(ResolutionError):
    """None of the configured repositories hosts the artifact."""


class TransferError(ResolutionError):
    """The transport failed while talking to a repository."""
