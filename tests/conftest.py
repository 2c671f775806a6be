import io
import logging

import pytest
from botocore.exceptions import ClientError, WaiterError
from rich.console import Console

from rdsreplica.services.clients import RegionContext

ACCOUNT_ID = "123456789012"


class FakePaginator:
    def __init__(self, pages_factory):
        self.pages_factory = pages_factory
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        return iter(self.pages_factory(**kwargs))


class FakeRegionState:
    """In-memory RDS/EC2/KMS state for one region."""

    def __init__(self, name, log):
        self.name = name
        self.log = log
        self.vpcs = []
        self.subnets = []
        self.subnet_groups = []
        self.instances = {}
        self.keys = []
        self.failures = {}
        self.waiter_failures = set()

    def add_vpc(self, vpc_id, cidr_block="10.0.0.0/16", is_default=False, name=None):
        vpc = {"VpcId": vpc_id, "CidrBlock": cidr_block, "IsDefault": is_default}
        if name:
            vpc["Tags"] = [{"Key": "Name", "Value": name}]
        self.vpcs.append(vpc)
        return self

    def add_subnet(self, subnet_id, vpc_id, availability_zone, cidr_block="10.0.1.0/24"):
        self.subnets.append(
            {
                "SubnetId": subnet_id,
                "VpcId": vpc_id,
                "AvailabilityZone": availability_zone,
                "CidrBlock": cidr_block,
            }
        )
        return self

    def add_subnet_group(self, name, vpc_id="vpc-1", subnet_count=2, description=""):
        self.subnet_groups.append(
            {
                "DBSubnetGroupName": name,
                "DBSubnetGroupDescription": description,
                "VpcId": vpc_id,
                "Subnets": [
                    {
                        "SubnetIdentifier": f"{name}-subnet-{index}",
                        "SubnetAvailabilityZone": {"Name": f"{self.name}{chr(97 + index)}"},
                    }
                    for index in range(subnet_count)
                ],
            }
        )
        return self

    def fail(self, operation, code="AccessDenied", message="Not authorized"):
        self.failures[operation] = (code, message)
        return self

    def record(self, service, operation, kwargs):
        self.log.append((self.name, service, operation, kwargs))
        if operation in self.failures:
            code, message = self.failures[operation]
            raise ClientError({"Error": {"Code": code, "Message": message}}, operation)

    def calls(self, operation=None):
        return [
            entry
            for entry in self.log
            if entry[0] == self.name and (operation is None or entry[2] == operation)
        ]


class FakeWaiter:
    def __init__(self, state):
        self.state = state

    def wait(self, **kwargs):
        self.state.record("rds", "WaitDBInstanceAvailable", kwargs)
        identifier = kwargs["DBInstanceIdentifier"]
        if identifier in self.state.waiter_failures:
            raise WaiterError(
                name="DBInstanceAvailable",
                reason="Max attempts exceeded",
                last_response={"DBInstances": [{"DBInstanceStatus": "failed"}]},
            )
        self.state.instances[identifier]["DBInstanceStatus"] = "available"


class FakeRdsClient:
    def __init__(self, state):
        self.state = state

    def get_paginator(self, name):
        assert name == "describe_db_subnet_groups"

        def pages(**kwargs):
            self.state.record("rds", "DescribeDBSubnetGroups", kwargs)
            return [{"DBSubnetGroups": list(self.state.subnet_groups)}]

        return FakePaginator(pages)

    def create_db_subnet_group(self, **kwargs):
        self.state.record("rds", "CreateDBSubnetGroup", kwargs)
        self.state.subnet_groups.append(
            {
                "DBSubnetGroupName": kwargs["DBSubnetGroupName"],
                "DBSubnetGroupDescription": kwargs["DBSubnetGroupDescription"],
                "Subnets": [{"SubnetIdentifier": subnet_id} for subnet_id in kwargs["SubnetIds"]],
            }
        )
        return {"DBSubnetGroup": {"DBSubnetGroupName": kwargs["DBSubnetGroupName"]}}

    def _instance(self, identifier):
        instance = {
            "DBInstanceIdentifier": identifier,
            "DBInstanceArn": f"arn:aws:rds:{self.state.name}:{ACCOUNT_ID}:db:{identifier}",
            "DBInstanceStatus": "creating",
        }
        self.state.instances[identifier] = instance
        return {"DBInstance": dict(instance)}

    def create_db_instance(self, **kwargs):
        self.state.record("rds", "CreateDBInstance", kwargs)
        return self._instance(kwargs["DBInstanceIdentifier"])

    def create_db_instance_read_replica(self, **kwargs):
        self.state.record("rds", "CreateDBInstanceReadReplica", kwargs)
        return self._instance(kwargs["DBInstanceIdentifier"])

    def describe_db_instances(self, **kwargs):
        self.state.record("rds", "DescribeDBInstances", kwargs)
        return {"DBInstances": [dict(self.state.instances[kwargs["DBInstanceIdentifier"]])]}

    def get_waiter(self, name):
        assert name == "db_instance_available"
        return FakeWaiter(self.state)


class FakeEc2Client:
    def __init__(self, state):
        self.state = state

    def describe_vpcs(self, **kwargs):
        self.state.record("ec2", "DescribeVpcs", kwargs)
        vpcs = list(self.state.vpcs)
        for vpc_filter in kwargs.get("Filters", []):
            if vpc_filter["Name"] == "isDefault":
                wanted = vpc_filter["Values"][0] == "true"
                vpcs = [vpc for vpc in vpcs if vpc["IsDefault"] is wanted]
        return {"Vpcs": vpcs}

    def get_paginator(self, name):
        if name == "describe_vpcs":
            return FakePaginator(lambda **kwargs: [self.describe_vpcs(**kwargs)])

        assert name == "describe_subnets"

        def pages(**kwargs):
            self.state.record("ec2", "DescribeSubnets", kwargs)
            vpc_ids = set()
            for subnet_filter in kwargs.get("Filters", []):
                if subnet_filter["Name"] == "vpc-id":
                    vpc_ids.update(subnet_filter["Values"])
            subnets = [s for s in self.state.subnets if not vpc_ids or s["VpcId"] in vpc_ids]
            return [{"Subnets": subnets}]

        return FakePaginator(pages)


class FakeKmsClient:
    def __init__(self, state):
        self.state = state

    def create_key(self, **kwargs):
        self.state.record("kms", "CreateKey", kwargs)
        key_id = f"key-{self.state.name}-{len(self.state.keys) + 1}"
        self.state.keys.append(key_id)
        return {
            "KeyMetadata": {
                "KeyId": key_id,
                "Arn": f"arn:aws:kms:{self.state.name}:{ACCOUNT_ID}:key/{key_id}",
            }
        }


class FakeAws:
    """Stands in for RegionalClientFactory with per-region fake clients."""

    CLIENT_TYPES = {"rds": FakeRdsClient, "ec2": FakeEc2Client, "kms": FakeKmsClient}

    def __init__(self, default_region="us-east-1"):
        self.default_region = default_region
        self.log = []
        self.regions = {}
        self.clients = {}

    def state(self, region):
        if region not in self.regions:
            self.regions[region] = FakeRegionState(region, self.log)
        return self.regions[region]

    def client(self, service_name, region):
        key = (service_name, region)
        if key not in self.clients:
            self.clients[key] = self.CLIENT_TYPES[service_name](self.state(region))
        return self.clients[key]

    def region(self, region):
        return RegionContext(region=region, factory=self)

    def operations(self):
        return [(region, operation) for region, _, operation, _ in self.log]


class StubPrompt:
    """Records every choice and answers with the default unless told otherwise."""

    def __init__(self, answer=None):
        self.answer = answer
        self.calls = []

    def choose(self, label, options, default):
        self.calls.append({"label": label, "options": list(options), "default": default})
        return self.answer if self.answer is not None else default


@pytest.fixture
def aws():
    return FakeAws()


@pytest.fixture
def prompt():
    return StubPrompt()


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False)


@pytest.fixture
def test_logger():
    return logging.getLogger("rdsreplica.tests")


@pytest.fixture
def prompt_factory():
    return StubPrompt
