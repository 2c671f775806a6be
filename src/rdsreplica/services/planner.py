"""Builds primary and replica create parameters from a provisioning request."""

from dataclasses import dataclass, field
from typing import List, Optional

from rdsreplica.errors import ValidationError
from rdsreplica.errors_catalog import actionable_error
from rdsreplica.models import (
    DatabaseInstance,
    PrimaryInstanceSpec,
    ProvisioningRequest,
    ReplicaInstanceSpec,
    ReplicationMode,
)

SECURITY_GROUPS_NOT_REUSABLE = (
    "VPC security groups are region-specific. The security groups given for the "
    "primary region will not be applied to the replica. Pass "
    "--replica-vpc-security-group-ids to set them."
)
REPLICA_KEY_IGNORED = (
    "A same-region replica is always encrypted with the primary's KMS key. "
    "Ignoring --replica-kms-key-id."
)


@dataclass(frozen=True)
class ReplicaPlan:
    spec: ReplicaInstanceSpec
    warnings: List[str] = field(default_factory=list)


def build_primary_spec(
    request: ProvisioningRequest,
    subnet_group_name: Optional[str],
    kms_key_id: Optional[str],
) -> PrimaryInstanceSpec:
    return PrimaryInstanceSpec(
        db_instance_identifier=request.db_instance_identifier,
        engine=request.engine,
        engine_version=request.engine_version,
        master_username=request.master_username,
        master_user_password=request.master_user_password,
        allocated_storage=request.allocated_storage,
        backup_retention_period=request.backup_retention_period,
        db_instance_class=request.db_instance_class,
        db_subnet_group_name=subnet_group_name,
        vpc_security_group_ids=tuple(request.vpc_security_group_ids),
        publicly_accessible=request.publicly_accessible,
        kms_key_id=kms_key_id,
    )


def build_replica_spec(
    request: ProvisioningRequest,
    mode: ReplicationMode,
    primary: DatabaseInstance,
    subnet_group_name: Optional[str] = None,
    kms_key_id: Optional[str] = None,
) -> ReplicaPlan:
    instance_class = request.replica_db_instance_class or request.db_instance_class

    if mode is ReplicationMode.SAME_REGION:
        return _same_region_plan(request, primary, instance_class)
    return _cross_region_plan(request, primary, instance_class, subnet_group_name, kms_key_id)


def _same_region_plan(
    request: ProvisioningRequest,
    primary: DatabaseInstance,
    instance_class: Optional[str],
) -> ReplicaPlan:
    # RDS inherits the subnet group from the source and rejects an explicit one.
    warnings = []
    if request.replica_kms_key_id:
        warnings.append(REPLICA_KEY_IGNORED)

    security_groups = request.replica_vpc_security_group_ids or request.vpc_security_group_ids
    spec = ReplicaInstanceSpec(
        db_instance_identifier=request.replica_identifier,
        source_db_instance_identifier=primary.identifier,
        db_instance_class=instance_class,
        vpc_security_group_ids=tuple(security_groups),
        publicly_accessible=request.publicly_accessible,
    )
    return ReplicaPlan(spec=spec, warnings=warnings)


def _cross_region_plan(
    request: ProvisioningRequest,
    primary: DatabaseInstance,
    instance_class: Optional[str],
    subnet_group_name: Optional[str],
    kms_key_id: Optional[str],
) -> ReplicaPlan:
    if not kms_key_id:
        raise ValidationError(actionable_error("replica_key_missing", region=request.replica_region))
    if not subnet_group_name:
        raise ValidationError(
            f"Cross-region replica in {request.replica_region} requires a DB subnet group."
        )

    warnings = []
    if not request.replica_vpc_security_group_ids and request.vpc_security_group_ids:
        warnings.append(SECURITY_GROUPS_NOT_REUSABLE)

    spec = ReplicaInstanceSpec(
        db_instance_identifier=request.replica_identifier,
        source_db_instance_identifier=primary.arn,
        source_region=request.primary_region,
        db_instance_class=instance_class,
        db_subnet_group_name=subnet_group_name,
        vpc_security_group_ids=tuple(request.replica_vpc_security_group_ids),
        publicly_accessible=request.publicly_accessible,
        kms_key_id=kms_key_id,
    )
    return ReplicaPlan(spec=spec, warnings=warnings)
