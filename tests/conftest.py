"""Pytest configuration and fixtures."""

import threading
from typing import Dict, List, Optional

import pytest

from serverlessvpc.errors import UpstreamError
from serverlessvpc.inventory import SecurityGroupRecord, SubnetRecord, VpcRecord


class FakeInventory:
    """In-memory inventory that records every query it receives."""

    def __init__(
        self,
        vpcs: Optional[Dict[str, List[str]]] = None,
        subnets: Optional[Dict[str, List[SubnetRecord]]] = None,
        security_groups: Optional[Dict[str, List[SecurityGroupRecord]]] = None,
        fail_on: Optional[str] = None,
    ):
        self.vpcs = vpcs or {}
        self.subnets = subnets or {}
        self.security_groups = security_groups or {}
        self.fail_on = fail_on
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def _record(self, operation, *args):
        with self._lock:
            self.calls.append((operation,) + args)
        if self.fail_on == operation:
            raise UpstreamError(f"{operation} is throttled", operation=operation)

    def query_vpcs(self, tag_name):
        self._record("describe_vpcs", tag_name)
        return [VpcRecord(vpc_id=vpc_id, tags={"Name": tag_name}) for vpc_id in self.vpcs.get(tag_name, [])]

    def query_subnets(self, vpc_id, tag_names):
        self._record("describe_subnets", vpc_id, list(tag_names))
        return [s for s in self.subnets.get(vpc_id, []) if s.name in tag_names]

    def query_security_groups(self, vpc_id, group_names):
        self._record("describe_security_groups", vpc_id, list(group_names))
        return [g for g in self.security_groups.get(vpc_id, []) if g.group_name in group_names]


def subnet(subnet_id: str, name: Optional[str]) -> SubnetRecord:
    return SubnetRecord(subnet_id=subnet_id, tags={"Name": name} if name else {})


def group(group_id: str, name: str) -> SecurityGroupRecord:
    return SecurityGroupRecord(group_id=group_id, group_name=name)


@pytest.fixture
def prod_inventory() -> FakeInventory:
    """Inventory with one 'prod' VPC holding subnets a/b and group sg1."""
    return FakeInventory(
        vpcs={"prod": ["vpc-123"]},
        subnets={"vpc-123": [subnet("subnet-1", "a"), subnet("subnet-2", "b")]},
        security_groups={"vpc-123": [group("sg-1", "sg1")]},
    )


@pytest.fixture
def prod_service() -> dict:
    """Service asking for the prod VPC, with one plain and one foreign-VPC function."""
    return {
        "service": "orders",
        "custom": {
            "vpc": {
                "vpcName": "prod",
                "subnetNames": ["a", "b"],
                "securityGroupNames": ["sg1"],
            }
        },
        "functions": {
            "create": {"handler": "handler.create"},
            "report": {"handler": "handler.report", "vpc": {"vpcName": "other"}},
        },
    }
