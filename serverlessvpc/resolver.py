"""
Network Name Resolver

Turns a VPC name and subnet / security group names into EC2 identifiers.
"""

import logging
from typing import Dict, Iterable, List, Sequence

from serverlessvpc.errors import NotFoundError, PartialResolutionError
from serverlessvpc.inventory import Inventory

logger = logging.getLogger(__name__)


def find_missing_names(requested: Iterable[str], found: Iterable[str]) -> List[str]:
    """Requested names absent from ``found``, de-duplicated, in request order."""
    present = set(found)
    return [name for name in dict.fromkeys(requested) if name not in present]


def _order_by_request(requested: Sequence[str], pairs: List[tuple]) -> List[str]:
    """Reorder (name, id) pairs to follow the requested names.

    Entries sharing a name keep their inventory order; unnamed entries go last.
    """
    rank: Dict[str, int] = {name: i for i, name in reversed(list(enumerate(requested)))}
    ranked = sorted(
        enumerate(pairs),
        key=lambda item: (rank.get(item[1][0], len(rank)), item[0]),
    )
    return [resource_id for _, (_, resource_id) in ranked]


class NetworkResolver:
    """Resolves names against an inventory.

    By default identifiers come back in the order the inventory returned them.
    With ``preserve_request_order`` they follow the order of the requested names.
    """

    def __init__(self, inventory: Inventory, preserve_request_order: bool = False):
        self.inventory = inventory
        self.preserve_request_order = preserve_request_order

    def resolve_vpc(self, vpc_name: str) -> str:
        """Return the id of the VPC tagged ``Name=vpc_name``.

        Raises:
            NotFoundError: If no VPC carries that name
        """
        vpcs = self.inventory.query_vpcs(vpc_name)
        if not vpcs:
            raise NotFoundError("Invalid vpc name, it does not exist")

        if len(vpcs) > 1:
            logger.warning(
                "%d VPCs are named %s, using the first one (%s); ignoring %s",
                len(vpcs),
                vpc_name,
                vpcs[0].vpc_id,
                ", ".join(v.vpc_id for v in vpcs[1:]),
            )
        logger.info("Resolved VPC %s to %s", vpc_name, vpcs[0].vpc_id)
        return vpcs[0].vpc_id

    def resolve_subnets(self, vpc_id: str, subnet_names: List[str]) -> List[str]:
        """Return subnet ids for every requested subnet name inside ``vpc_id``.

        Raises:
            NotFoundError: If none of the names exist
            PartialResolutionError: If only some of them exist
        """
        subnets = self.inventory.query_subnets(vpc_id, subnet_names)
        if not subnets:
            raise NotFoundError("Invalid subnet name, it does not exist")

        # compared by name too: two subnets sharing one name can hide a missing one
        missing = find_missing_names(subnet_names, (s.name for s in subnets if s.name is not None))
        if missing:
            raise PartialResolutionError(
                f"Not all subnets were registered: {','.join(missing)}", missing
            )

        pairs = [(s.name, s.subnet_id) for s in subnets]
        subnet_ids = self._ordered(subnet_names, pairs)
        logger.info("Resolved subnets %s to %s", subnet_names, subnet_ids)
        return subnet_ids

    def resolve_security_groups(self, vpc_id: str, group_names: List[str]) -> List[str]:
        """Return security group ids for every requested group name inside ``vpc_id``.

        Raises:
            NotFoundError: If none of the names exist
            PartialResolutionError: If only some of them exist
        """
        groups = self.inventory.query_security_groups(vpc_id, group_names)
        if not groups:
            raise NotFoundError("Invalid security group name, it does not exist")

        missing = find_missing_names(group_names, (g.group_name for g in groups))
        if missing:
            raise PartialResolutionError(
                f"Not all security group were registered: {','.join(missing)}", missing
            )

        pairs = [(g.group_name, g.group_id) for g in groups]
        group_ids = self._ordered(group_names, pairs)
        logger.info("Resolved security groups %s to %s", group_names, group_ids)
        return group_ids

    def _ordered(self, requested: List[str], pairs: List[tuple]) -> List[str]:
        if self.preserve_request_order:
            return _order_by_request(requested, pairs)
        return [resource_id for _, resource_id in pairs]
