"""
VPC Config Updater

Runs the whole augmentation step: validate custom.vpc, resolve the names,
then patch the functions. Nothing is mutated unless every lookup succeeded.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, MutableMapping, Optional

from serverlessvpc.applier import apply_attachment
from serverlessvpc.config import NetworkRequest, parse_functions
from serverlessvpc.errors import VpcConfigError
from serverlessvpc.inventory import Inventory
from serverlessvpc.resolver import NetworkResolver

logger = logging.getLogger(__name__)


class VpcConfigUpdater:
    """Patches a parsed serverless service with resolved VPC ids."""

    def __init__(self, inventory: Inventory, preserve_request_order: bool = False):
        self.inventory = inventory
        self.resolver = NetworkResolver(inventory, preserve_request_order=preserve_request_order)

    def update_vpc_config(self, service: MutableMapping[str, Any]) -> Dict[str, Any]:
        """Resolve custom.vpc and attach it to the eligible functions.

        Args:
            service: Parsed serverless configuration, mutated in place

        Returns:
            The service's ``functions`` mapping (empty if it has none)

        Raises:
            VpcConfigError: Wrapping whichever stage failed
        """
        logger.info("Updating VPC config...")
        try:
            return self._update(service)
        except Exception as e:
            raise VpcConfigError(e) from e

    def _update(self, service: MutableMapping[str, Any]) -> Dict[str, Any]:
        request = NetworkRequest.from_service(service)
        request.validate()

        # parsed up front so a malformed function fails before any lookup
        functions = parse_functions(service)

        vpc_id = self.resolver.resolve_vpc(request.vpc_name)
        subnet_ids, security_group_ids = self._resolve_members(vpc_id, request)

        attached = apply_attachment(functions, request, subnet_ids, security_group_ids)
        logger.info("VPC config set for: %s", ", ".join(attached) or "no functions")

        return service.get("functions") or {}

    def _resolve_members(self, vpc_id: str, request: NetworkRequest):
        """Look up subnets and security groups concurrently and wait for both."""
        subnet_ids: Optional[list] = None
        security_group_ids: Optional[list] = None

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="vpc-lookup") as executor:
            subnet_future = None
            group_future = None
            if request.wants_subnets:
                subnet_future = executor.submit(self.resolver.resolve_subnets, vpc_id, request.subnet_names)
            if request.wants_security_groups:
                group_future = executor.submit(
                    self.resolver.resolve_security_groups, vpc_id, request.security_group_names
                )

            if subnet_future is not None:
                subnet_ids = subnet_future.result()
            if group_future is not None:
                security_group_ids = group_future.result()

        return subnet_ids, security_group_ids


def update_vpc_config(
    service: MutableMapping[str, Any],
    inventory: Inventory,
    preserve_request_order: bool = False,
) -> Dict[str, Any]:
    """Convenience wrapper around VpcConfigUpdater."""
    updater = VpcConfigUpdater(inventory, preserve_request_order=preserve_request_order)
    return updater.update_vpc_config(service)
