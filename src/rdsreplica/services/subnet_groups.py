"""DB subnet group discovery and creation."""

import time
from collections import OrderedDict
from typing import List, Optional, Sequence

from rdsreplica.constants import (
    MIN_AVAILABILITY_ZONES,
    SUBNET_GROUP_DESCRIPTION,
    SUBNET_GROUP_TAG_KEY,
    SUBNET_GROUP_TAG_VALUE,
)
from rdsreplica.errors import ValidationError
from rdsreplica.errors_catalog import actionable_error
from rdsreplica.models import Subnet, SubnetGroup, Vpc
from rdsreplica.services.clients import RegionContext, provider_call
from rdsreplica.services.prompt import ChoicePrompt

SUBNET_GROUP_PROMPT = "Multiple DB subnet groups found. Please select one:"
VPC_PROMPT = "Multiple VPCs found. Please select one to create a DB subnet group:"


def subnet_group_label(group: SubnetGroup) -> str:
    label = f"{group.name} (VPC: {group.vpc_id}, {len(group.subnets)} subnets)"
    if group.description:
        label += f" - {group.description}"
    return label


def vpc_label(vpc: Vpc) -> str:
    label = vpc.vpc_id
    if vpc.is_default:
        label += " (Default)"
    if vpc.cidr_block:
        label += f" - {vpc.cidr_block}"
    if vpc.name:
        label += f" - {vpc.name}"
    return label


def choose_existing_group(groups: Sequence[SubnetGroup], prompt: ChoicePrompt) -> Optional[str]:
    """None when no group exists; the only group; or the operator's pick."""
    if not groups:
        return None
    if len(groups) == 1:
        return groups[0].name

    options = [(group.name, subnet_group_label(group)) for group in groups]
    return prompt.choose(SUBNET_GROUP_PROMPT, options, default=groups[0].name)


def choose_vpc(
    default_vpc: Optional[Vpc],
    vpcs: Sequence[Vpc],
    prompt: ChoicePrompt,
    region: str,
) -> Vpc:
    if not vpcs:
        raise ValidationError(actionable_error("no_vpcs", region=region))
    if len(vpcs) == 1:
        return vpcs[0]

    default_id = default_vpc.vpc_id if default_vpc else vpcs[0].vpc_id
    options = [(vpc.vpc_id, vpc_label(vpc)) for vpc in vpcs]
    selected_id = prompt.choose(VPC_PROMPT, options, default=default_id)
    for vpc in vpcs:
        if vpc.vpc_id == selected_id:
            return vpc

    raise ValidationError(f"Selected VPC {selected_id} is not available in {region}.")


def select_subnets_per_zone(subnets: Sequence[Subnet], vpc_id: str, region: str) -> List[Subnet]:
    """Keep the first subnet listed in each availability zone."""
    if not subnets:
        raise ValidationError(actionable_error("no_subnets", vpc_id=vpc_id, region=region))

    by_zone: "OrderedDict[str, Subnet]" = OrderedDict()
    for subnet in subnets:
        by_zone.setdefault(subnet.availability_zone, subnet)

    if len(by_zone) < MIN_AVAILABILITY_ZONES:
        raise ValidationError(
            actionable_error(
                "insufficient_azs",
                vpc_id=vpc_id,
                region=region,
                zone_count=str(len(by_zone)),
            )
        )
    return list(by_zone.values())


def generate_subnet_group_name(vpc_id: str) -> str:
    return f"default-{vpc_id.lower().replace(' ', '-')}-{int(time.time())}"


class SubnetGroupResolver:
    """Finds a DB subnet group for a region, creating one from a VPC if none exist."""

    def __init__(self, logger, console, prompt: ChoicePrompt):
        self.logger = logger
        self.console = console
        self.prompt = prompt
        self.created_groups: List[SubnetGroup] = []

    def resolve_subnet_group(self, region_context: RegionContext) -> str:
        region = region_context.region
        groups = self.list_subnet_groups(region_context)
        selected = choose_existing_group(groups, self.prompt)
        if selected:
            self.logger.info("Using existing DB subnet group in %s: %s", region, selected)
            self.console.print(f"[green]Using DB subnet group: {selected}[/green]")
            return selected

        self.console.print(
            f"[blue]No DB subnet groups found in {region}. Attempting to create one from a VPC...[/blue]"
        )
        vpc = choose_vpc(
            self.get_default_vpc(region_context),
            self.list_vpcs(region_context),
            self.prompt,
            region,
        )
        self.logger.info("Selected VPC %s in %s", vpc.vpc_id, region)

        subnets = select_subnets_per_zone(
            self.list_subnets(region_context, vpc.vpc_id),
            vpc.vpc_id,
            region,
        )
        return self.create_subnet_group(region_context, vpc.vpc_id, subnets)

    def list_subnet_groups(self, region_context: RegionContext) -> List[SubnetGroup]:
        groups: List[SubnetGroup] = []
        with provider_call("DescribeDBSubnetGroups"):
            paginator = region_context.rds.get_paginator("describe_db_subnet_groups")
            for page in paginator.paginate():
                for group in page.get("DBSubnetGroups", []):
                    groups.append(SubnetGroup.from_api(group))
        self.logger.debug("Found %s DB subnet group(s) in %s", len(groups), region_context.region)
        return groups

    def get_default_vpc(self, region_context: RegionContext) -> Optional[Vpc]:
        with provider_call("DescribeVpcs"):
            response = region_context.ec2.describe_vpcs(
                Filters=[{"Name": "isDefault", "Values": ["true"]}]
            )
        vpcs = response.get("Vpcs", [])
        if not vpcs:
            return None
        return Vpc.from_api(vpcs[0])

    def list_vpcs(self, region_context: RegionContext) -> List[Vpc]:
        vpcs: List[Vpc] = []
        with provider_call("DescribeVpcs"):
            paginator = region_context.ec2.get_paginator("describe_vpcs")
            for page in paginator.paginate():
                vpcs.extend(Vpc.from_api(vpc) for vpc in page.get("Vpcs", []))
        return vpcs

    def list_subnets(self, region_context: RegionContext, vpc_id: str) -> List[Subnet]:
        subnets: List[Subnet] = []
        with provider_call("DescribeSubnets"):
            paginator = region_context.ec2.get_paginator("describe_subnets")
            for page in paginator.paginate(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}]):
                subnets.extend(Subnet.from_api(subnet) for subnet in page.get("Subnets", []))
        return subnets

    def create_subnet_group(
        self,
        region_context: RegionContext,
        vpc_id: str,
        subnets: Sequence[Subnet],
        name: Optional[str] = None,
    ) -> str:
        group_name = name or generate_subnet_group_name(vpc_id)
        description = SUBNET_GROUP_DESCRIPTION.format(vpc_id=vpc_id)

        with provider_call("CreateDBSubnetGroup"):
            region_context.rds.create_db_subnet_group(
                DBSubnetGroupName=group_name,
                DBSubnetGroupDescription=description,
                SubnetIds=[subnet.subnet_id for subnet in subnets],
                Tags=[{"Key": SUBNET_GROUP_TAG_KEY, "Value": SUBNET_GROUP_TAG_VALUE}],
            )

        self.created_groups.append(
            SubnetGroup(
                name=group_name,
                description=description,
                vpc_id=vpc_id,
                subnets=tuple(subnets),
            )
        )
        self.logger.info("Created DB subnet group %s in %s", group_name, region_context.region)
        self.console.print(f"[green]Created DB subnet group: {group_name}[/green]")
        return group_name
