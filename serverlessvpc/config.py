"""
Service Configuration Model

Typed views over the parsed serverless configuration: the custom.vpc request
and the per-function vpc blocks that get patched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

from serverlessvpc.errors import ConfigurationError

logger = logging.getLogger(__name__)

MISCONFIGURED_MESSAGE = (
    "Serverless file is not configured correctly. You must specify the vpcName "
    "and at least one of subnetNames or securityGroupNames. Please see README for proper setup."
)


def _name_list(value: Any, key: str) -> Optional[List[str]]:
    """Validate an optional list of resource names."""
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"custom.vpc.{key} must be a list of names, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str) or not item:
            raise ConfigurationError(f"custom.vpc.{key} must only contain non-empty strings: {item!r}")
    return list(value)


@dataclass
class NetworkRequest:
    """The network attachment requested under custom.vpc."""

    vpc_name: Optional[str]
    subnet_names: Optional[List[str]] = None
    security_group_names: Optional[List[str]] = None
    disable: bool = False

    @property
    def wants_subnets(self) -> bool:
        return bool(self.subnet_names)

    @property
    def wants_security_groups(self) -> bool:
        return bool(self.security_group_names)

    @classmethod
    def from_service(cls, service: Mapping[str, Any]) -> "NetworkRequest":
        """Build a request from a parsed serverless service.

        Args:
            service: The whole parsed configuration (with ``custom`` and ``functions``)

        Returns:
            NetworkRequest built from ``custom.vpc``

        Raises:
            ConfigurationError: If ``custom.vpc`` is missing or has the wrong shape
        """
        if not isinstance(service, Mapping):
            raise ConfigurationError("Service configuration must be a mapping")

        custom = service.get("custom") or {}
        if not isinstance(custom, Mapping):
            raise ConfigurationError("custom must be a mapping")

        raw = custom.get("vpc")
        if raw is None:
            raise ConfigurationError(MISCONFIGURED_MESSAGE)
        if not isinstance(raw, Mapping):
            raise ConfigurationError("custom.vpc must be a mapping")

        vpc_name = raw.get("vpcName")
        if vpc_name is not None and not isinstance(vpc_name, str):
            raise ConfigurationError("custom.vpc.vpcName must be a string")

        disable = raw.get("disable", False)
        if not isinstance(disable, bool):
            raise ConfigurationError("custom.vpc.disable must be true or false")

        return cls(
            vpc_name=vpc_name,
            subnet_names=_name_list(raw.get("subnetNames"), "subnetNames"),
            security_group_names=_name_list(raw.get("securityGroupNames"), "securityGroupNames"),
            disable=disable,
        )

    def validate(self) -> None:
        """Fail fast unless a VPC name and at least one name list are given."""
        if not self.vpc_name or not (self.wants_subnets or self.wants_security_groups):
            raise ConfigurationError(MISCONFIGURED_MESSAGE)


@dataclass
class VpcAttachment:
    """A function's own vpc block; only the name takes part in selection."""

    vpc_name: Optional[Any] = None


@dataclass
class FunctionEntry:
    """A function definition plus the raw mapping it was parsed from."""

    name: str
    raw: MutableMapping[str, Any]
    vpc: Optional[VpcAttachment] = None
    has_vpc: bool = False

    @classmethod
    def from_config(cls, name: str, raw: Any) -> "FunctionEntry":
        """Parse one entry of the ``functions`` mapping.

        ``vpc: null`` is kept as "defined" so a function can opt out.
        """
        if not isinstance(raw, MutableMapping):
            raise ConfigurationError(f"Function {name} must be a mapping")

        if "vpc" not in raw:
            return cls(name=name, raw=raw)

        block = raw["vpc"]
        if block is None:
            return cls(name=name, raw=raw, has_vpc=True)
        if not isinstance(block, Mapping):
            raise ConfigurationError(f"Function {name}: vpc must be a mapping")

        return cls(
            name=name,
            raw=raw,
            vpc=VpcAttachment(vpc_name=block.get("vpcName")),
            has_vpc=True,
        )


def parse_functions(service: Mapping[str, Any]) -> Dict[str, FunctionEntry]:
    """Parse every function of the service, failing before anything is touched."""
    functions = service.get("functions")
    if functions is None:
        return {}
    if not isinstance(functions, Mapping):
        raise ConfigurationError("functions must be a mapping of name to definition")

    entries = {name: FunctionEntry.from_config(name, raw) for name, raw in functions.items()}
    logger.debug("Parsed %d function definitions", len(entries))
    return entries
