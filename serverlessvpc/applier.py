"""
Attachment Applier

Selects which functions receive the resolved network and writes the ids onto them.
"""

import logging
from typing import List, Mapping, Optional

from serverlessvpc.config import FunctionEntry, NetworkRequest
from serverlessvpc.errors import EmptyResultError

logger = logging.getLogger(__name__)


def is_eligible(function: FunctionEntry, request: NetworkRequest) -> bool:
    """Decide whether ``function`` gets the resolved ids.

    Normal mode targets functions without a vpc block. With ``disable`` set,
    only functions whose own vpc block names the requested VPC are targeted.
    """
    no_vpc_defined = not function.has_vpc
    vpc_name_matches = function.vpc is not None and function.vpc.vpc_name == request.vpc_name
    return (not request.disable and no_vpc_defined) or (request.disable and vpc_name_matches)


def select_eligible(functions: Mapping[str, FunctionEntry], request: NetworkRequest) -> List[FunctionEntry]:
    return [f for f in functions.values() if is_eligible(f, request)]


def check_resolved(
    request: NetworkRequest,
    subnet_ids: Optional[List[str]],
    security_group_ids: Optional[List[str]],
) -> None:
    """Make sure every requested id list came back non-empty."""
    if request.wants_subnets and not subnet_ids:
        raise EmptyResultError("Vpc was not set")
    if request.wants_security_groups and not security_group_ids:
        raise EmptyResultError("Vpc was not set")


def apply_attachment(
    functions: Mapping[str, FunctionEntry],
    request: NetworkRequest,
    subnet_ids: Optional[List[str]],
    security_group_ids: Optional[List[str]],
) -> List[str]:
    """Write the resolved ids onto every eligible function.

    Args:
        functions: Parsed function entries, keyed by function name
        request: The custom.vpc request
        subnet_ids: Resolved subnet ids, or None if no subnets were requested
        security_group_ids: Resolved security group ids, or None if none were requested

    Returns:
        Names of the functions that were attached, in configuration order
    """
    check_resolved(request, subnet_ids, security_group_ids)

    eligible = select_eligible(functions, request)
    for function in eligible:
        block = function.raw.get("vpc")
        if block is None:
            block = function.raw["vpc"] = {}

        # one list per function, never shared
        if request.wants_subnets:
            block["subnetIds"] = list(subnet_ids)
        if request.wants_security_groups:
            block["securityGroupIds"] = list(security_group_ids)
        logger.debug("Attached %s to function %s", request.vpc_name, function.name)

    logger.info("Attached VPC %s to %d of %d functions", request.vpc_name, len(eligible), len(functions))
    return [function.name for function in eligible]
