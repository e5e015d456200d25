"""
Error Types

Exceptions raised while resolving VPC names and patching function configs.
"""

from typing import List, Optional


class VpcPluginError(Exception):
    """Base class for every error raised by serverlessvpc."""


class ConfigurationError(VpcPluginError):
    """The custom.vpc section or a function entry is malformed."""


class NotFoundError(VpcPluginError):
    """A VPC, subnet or security group filter matched nothing."""


class PartialResolutionError(VpcPluginError):
    """Some, but not all, of the requested names were found."""

    def __init__(self, message: str, missing: List[str]):
        super().__init__(message)
        self.missing = list(missing)


class EmptyResultError(VpcPluginError):
    """A requested identifier list was empty when it was about to be applied."""


class UpstreamError(VpcPluginError):
    """The EC2 inventory call itself failed (network, auth, throttling)."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class VpcConfigError(VpcPluginError):
    """Top-level failure wrapping whatever stage went wrong."""

    def __init__(self, original: Exception):
        super().__init__(f"Could not set vpc config. Message: {original}")
        self.original = original
