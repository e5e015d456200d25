"""serverlessvpc - Resolve VPC names into ids for serverless functions."""

__version__ = "1.0.0"

from .applier import apply_attachment, is_eligible
from .config import FunctionEntry, NetworkRequest, VpcAttachment
from .errors import (
    ConfigurationError,
    EmptyResultError,
    NotFoundError,
    PartialResolutionError,
    UpstreamError,
    VpcConfigError,
    VpcPluginError,
)
from .inventory import EC2Inventory
from .resolver import NetworkResolver
from .updater import VpcConfigUpdater, update_vpc_config

__all__ = [
    "__version__",
    "apply_attachment",
    "is_eligible",
    "FunctionEntry",
    "NetworkRequest",
    "VpcAttachment",
    "ConfigurationError",
    "EmptyResultError",
    "NotFoundError",
    "PartialResolutionError",
    "UpstreamError",
    "VpcConfigError",
    "VpcPluginError",
    "EC2Inventory",
    "NetworkResolver",
    "VpcConfigUpdater",
    "update_vpc_config",
]
