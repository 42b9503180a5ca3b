"""Exception hierarchy for blast-radius."""

from __future__ import annotations


class BlastRadiusError(Exception):
    """Base class for every error raised by blast-radius."""


class ConfigurationError(BlastRadiusError):
    """Invalid or missing configuration (directories, go.mod, config file)."""


class NoServicesFoundError(BlastRadiusError):
    """The services directory is missing or holds no deployable service."""


class ResolverError(BlastRadiusError):
    """Resolving the dependencies of a single service failed."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message


class ChangeSourceError(BlastRadiusError):
    """The revision-control collaborator failed or timed out."""
