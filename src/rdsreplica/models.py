"""Shared domain models for rds-replica."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    DEFAULT_ALLOCATED_STORAGE,
    DEFAULT_BACKUP_RETENTION_PERIOD,
    DEFAULT_DB_INSTANCE_CLASS,
    DEFAULT_DB_INSTANCE_IDENTIFIER,
    DEFAULT_ENGINE,
    DEFAULT_ENGINE_VERSION,
    DEFAULT_MASTER_USER_PASSWORD,
    DEFAULT_MASTER_USERNAME,
    REPLICA_IDENTIFIER_SUFFIX,
)


class ReplicationMode(str, Enum):
    SAME_REGION = "same-region"
    CROSS_REGION = "cross-region"


@dataclass(frozen=True)
class ProvisioningRequest:
    """Operator input for one primary + read replica run."""

    primary_region: str
    replica_region: str
    engine: str = DEFAULT_ENGINE
    engine_version: str = DEFAULT_ENGINE_VERSION
    db_instance_identifier: str = DEFAULT_DB_INSTANCE_IDENTIFIER
    master_username: str = DEFAULT_MASTER_USERNAME
    master_user_password: str = field(default=DEFAULT_MASTER_USER_PASSWORD, repr=False)
    db_instance_class: Optional[str] = DEFAULT_DB_INSTANCE_CLASS
    allocated_storage: int = DEFAULT_ALLOCATED_STORAGE
    backup_retention_period: int = DEFAULT_BACKUP_RETENTION_PERIOD
    db_subnet_group_name: Optional[str] = None
    replica_db_subnet_group_name: Optional[str] = None
    vpc_security_group_ids: Tuple[str, ...] = ()
    replica_vpc_security_group_ids: Tuple[str, ...] = ()
    publicly_accessible: bool = False
    kms_key_id: Optional[str] = None
    replica_kms_key_id: Optional[str] = None
    replica_db_instance_class: Optional[str] = None
    replica_db_instance_identifier: Optional[str] = None

    @property
    def replication_mode(self) -> ReplicationMode:
        if self.primary_region == self.replica_region:
            return ReplicationMode.SAME_REGION
        return ReplicationMode.CROSS_REGION

    @property
    def replica_identifier(self) -> str:
        return self.replica_db_instance_identifier or (
            f"{self.db_instance_identifier}{REPLICA_IDENTIFIER_SUFFIX}"
        )

    def describe(self) -> Dict[str, Any]:
        """Manifest-safe view of the request; the password is never included."""
        return {
            "engine": self.engine,
            "engine_version": self.engine_version,
            "db_instance_identifier": self.db_instance_identifier,
            "replica_db_instance_identifier": self.replica_identifier,
            "db_instance_class": self.db_instance_class,
            "replica_db_instance_class": self.replica_db_instance_class,
            "allocated_storage": self.allocated_storage,
            "backup_retention_period": self.backup_retention_period,
            "primary_region": self.primary_region,
            "replica_region": self.replica_region,
            "db_subnet_group_name": self.db_subnet_group_name,
            "replica_db_subnet_group_name": self.replica_db_subnet_group_name,
            "vpc_security_group_ids": list(self.vpc_security_group_ids),
            "replica_vpc_security_group_ids": list(self.replica_vpc_security_group_ids),
            "publicly_accessible": self.publicly_accessible,
            "kms_key_id": self.kms_key_id,
            "replica_kms_key_id": self.replica_kms_key_id,
        }


@dataclass(frozen=True)
class EncryptionKey:
    key_id: str
    region: str
    purpose: str
    arn: Optional[str] = None


@dataclass(frozen=True)
class Vpc:
    vpc_id: str
    cidr_block: str = ""
    is_default: bool = False
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Vpc":
        tags = {tag.get("Key"): tag.get("Value") for tag in data.get("Tags", [])}
        return cls(
            vpc_id=data["VpcId"],
            cidr_block=data.get("CidrBlock", ""),
            is_default=bool(data.get("IsDefault", False)),
            name=tags.get("Name"),
        )


@dataclass(frozen=True)
class Subnet:
    subnet_id: str
    availability_zone: str
    cidr_block: str = ""
    vpc_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Subnet":
        return cls(
            subnet_id=data["SubnetId"],
            availability_zone=data.get("AvailabilityZone", ""),
            cidr_block=data.get("CidrBlock", ""),
            vpc_id=data.get("VpcId"),
        )


@dataclass(frozen=True)
class SubnetGroup:
    name: str
    description: str = ""
    vpc_id: str = ""
    subnets: Tuple[Subnet, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SubnetGroup":
        subnets = tuple(
            Subnet(
                subnet_id=subnet["SubnetIdentifier"],
                availability_zone=subnet.get("SubnetAvailabilityZone", {}).get("Name", ""),
                vpc_id=data.get("VpcId"),
            )
            for subnet in data.get("Subnets", [])
        )
        return cls(
            name=data["DBSubnetGroupName"],
            description=data.get("DBSubnetGroupDescription", ""),
            vpc_id=data.get("VpcId", ""),
            subnets=subnets,
        )

    @property
    def availability_zones(self) -> List[str]:
        return sorted({subnet.availability_zone for subnet in self.subnets})


@dataclass(frozen=True)
class PrimaryInstanceSpec:
    """Resolved parameters for ``rds.create_db_instance``."""

    db_instance_identifier: str
    engine: str
    engine_version: str
    master_username: str
    master_user_password: str = field(repr=False)
    allocated_storage: int
    backup_retention_period: int
    db_instance_class: Optional[str] = None
    db_subnet_group_name: Optional[str] = None
    vpc_security_group_ids: Tuple[str, ...] = ()
    publicly_accessible: bool = False
    kms_key_id: Optional[str] = None

    @property
    def storage_encrypted(self) -> bool:
        return self.kms_key_id is not None

    def to_api_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "DBInstanceIdentifier": self.db_instance_identifier,
            "Engine": self.engine,
            "EngineVersion": self.engine_version,
            "MasterUsername": self.master_username,
            "MasterUserPassword": self.master_user_password,
            "AllocatedStorage": self.allocated_storage,
            "BackupRetentionPeriod": self.backup_retention_period,
        }
        if self.db_instance_class:
            params["DBInstanceClass"] = self.db_instance_class
        if self.db_subnet_group_name:
            params["DBSubnetGroupName"] = self.db_subnet_group_name
        if self.vpc_security_group_ids:
            params["VpcSecurityGroupIds"] = list(self.vpc_security_group_ids)
        if self.publicly_accessible:
            params["PubliclyAccessible"] = True
        if self.kms_key_id:
            # RDS rejects KmsKeyId unless StorageEncrypted is set.
            params["StorageEncrypted"] = True
            params["KmsKeyId"] = self.kms_key_id
        return params


@dataclass(frozen=True)
class ReplicaInstanceSpec:
    """Resolved parameters for ``rds.create_db_instance_read_replica``."""

    db_instance_identifier: str
    source_db_instance_identifier: str
    source_region: Optional[str] = None
    db_instance_class: Optional[str] = None
    db_subnet_group_name: Optional[str] = None
    vpc_security_group_ids: Tuple[str, ...] = ()
    publicly_accessible: bool = False
    kms_key_id: Optional[str] = None

    @property
    def storage_encrypted(self) -> bool:
        return self.kms_key_id is not None

    def to_api_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "DBInstanceIdentifier": self.db_instance_identifier,
            "SourceDBInstanceIdentifier": self.source_db_instance_identifier,
        }
        if self.source_region:
            params["SourceRegion"] = self.source_region
        if self.db_instance_class:
            params["DBInstanceClass"] = self.db_instance_class
        if self.db_subnet_group_name:
            params["DBSubnetGroupName"] = self.db_subnet_group_name
        if self.vpc_security_group_ids:
            params["VpcSecurityGroupIds"] = list(self.vpc_security_group_ids)
        if self.publicly_accessible:
            params["PubliclyAccessible"] = True
        if self.kms_key_id:
            params["StorageEncrypted"] = True
            params["KmsKeyId"] = self.kms_key_id
        return params


@dataclass(frozen=True)
class DatabaseInstance:
    identifier: str
    arn: str
    status: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any], region: Optional[str] = None) -> "DatabaseInstance":
        return cls(
            identifier=data["DBInstanceIdentifier"],
            arn=data.get("DBInstanceArn", ""),
            status=data.get("DBInstanceStatus"),
            region=region,
        )


@dataclass(frozen=True)
class WaitOutcome:
    identifier: str
    succeeded: bool
    status: Optional[str] = None


@dataclass
class ProvisioningResult:
    replication_mode: ReplicationMode
    primary: DatabaseInstance
    replica: DatabaseInstance
    created_keys: List[EncryptionKey] = field(default_factory=list)
    created_subnet_groups: List[SubnetGroup] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
