"""Actionable error catalog for rds-replica."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "no_region": {
        "what": "No AWS region configured.",
        "next": "Pass `--primary-region` or `--region`, or set a default region in your AWS profile.",
    },
    "no_vpcs": {
        "what": "No VPCs found in {region}.",
        "next": "Create a DB subnet group manually or specify one with `--db-subnet-group-name`.",
    },
    "no_subnets": {
        "what": "No subnets found in VPC {vpc_id} ({region}).",
        "next": "Create subnets in at least two availability zones or create a DB subnet group manually.",
    },
    "insufficient_azs": {
        "what": "Subnets in VPC {vpc_id} ({region}) span {zone_count} availability zone(s); RDS requires at least 2.",
        "next": "Add a subnet in another availability zone or create a DB subnet group manually.",
    },
    "backup_retention_range": {
        "what": "Backup retention period must be between 0 and 35 days (got {value}).",
        "next": "Pass a value in range with `--backup-retention-period`.",
    },
    "backups_disabled": {
        "what": "Backup retention period is 0. RDS refuses read replicas of an instance without automated backups, so the replica stage will fail after the primary is created.",
        "next": "Set `--backup-retention-period` to 1 or more.",
    },
    "replica_key_missing": {
        "what": "Cross-region replica in {region} has no KMS key.",
        "next": "Pass `--replica-kms-key-id` or let the tool create one.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
