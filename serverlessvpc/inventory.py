"""
EC2 Inventory

Read-only lookups of VPCs, subnets and security groups by name. Retries and
backoff are left to botocore's retry handler.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from serverlessvpc.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 20


def _tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {tag["Key"]: tag.get("Value", "") for tag in tags or [] if "Key" in tag}


@dataclass
class VpcRecord:
    """A VPC as returned by describe_vpcs."""

    vpc_id: str
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.tags.get("Name")


@dataclass
class SubnetRecord:
    """A subnet as returned by describe_subnets."""

    subnet_id: str
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.tags.get("Name")


@dataclass
class SecurityGroupRecord:
    """A security group as returned by describe_security_groups."""

    group_id: str
    group_name: str


class Inventory(Protocol):
    """What the resolvers need from an inventory backend."""

    def query_vpcs(self, tag_name: str) -> List[VpcRecord]:
        ...

    def query_subnets(self, vpc_id: str, tag_names: List[str]) -> List[SubnetRecord]:
        ...

    def query_security_groups(self, vpc_id: str, group_names: List[str]) -> List[SecurityGroupRecord]:
        ...


class EC2Inventory:
    """Inventory backed by the EC2 Describe* APIs."""

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        client: Any = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """Create the inventory.

        Args:
            region: AWS region; falls back to the botocore default chain
            profile: Named AWS profile to build the session from
            client: Pre-built EC2 client (region/profile are ignored when given)
            max_attempts: Total attempts per call for botocore's retry handler
        """
        if client is None:
            session = boto3.session.Session(profile_name=profile, region_name=region)
            client = session.client(
                "ec2",
                config=Config(retries={"max_attempts": max_attempts, "mode": "standard"}),
            )
        self._client = client

    @property
    def region(self) -> Optional[str]:
        return self._client.meta.region_name

    def _paginate(self, operation: str, result_key: str, filters: List[Dict[str, Any]]) -> Iterator[Dict[str, Any]]:
        logger.debug("%s filters=%s", operation, filters)
        try:
            paginator = self._client.get_paginator(operation)
            for page in paginator.paginate(Filters=filters):
                yield from page.get(result_key, [])
        except (ClientError, BotoCoreError) as e:
            raise UpstreamError(str(e), operation=operation) from e

    def query_vpcs(self, tag_name: str) -> List[VpcRecord]:
        """Return VPCs whose Name tag equals ``tag_name``, in API order."""
        filters = [{"Name": "tag:Name", "Values": [tag_name]}]
        return [
            VpcRecord(vpc_id=vpc["VpcId"], tags=_tags_to_dict(vpc.get("Tags")))
            for vpc in self._paginate("describe_vpcs", "Vpcs", filters)
        ]

    def query_subnets(self, vpc_id: str, tag_names: List[str]) -> List[SubnetRecord]:
        """Return subnets of ``vpc_id`` whose Name tag is one of ``tag_names``."""
        filters = [
            {"Name": "vpc-id", "Values": [vpc_id]},
            {"Name": "tag:Name", "Values": list(tag_names)},
        ]
        return [
            SubnetRecord(subnet_id=subnet["SubnetId"], tags=_tags_to_dict(subnet.get("Tags")))
            for subnet in self._paginate("describe_subnets", "Subnets", filters)
        ]

    def query_security_groups(self, vpc_id: str, group_names: List[str]) -> List[SecurityGroupRecord]:
        """Return security groups of ``vpc_id`` named one of ``group_names``."""
        filters = [
            {"Name": "vpc-id", "Values": [vpc_id]},
            {"Name": "group-name", "Values": list(group_names)},
        ]
        return [
            SecurityGroupRecord(group_id=group["GroupId"], group_name=group.get("GroupName", ""))
            for group in self._paginate("describe_security_groups", "SecurityGroups", filters)
        ]
