"""Defaults and fixed values shared across rds-replica."""

TOOL_NAME = "rds-replica"

DEFAULT_ENGINE = "mysql"
DEFAULT_ENGINE_VERSION = "8.0.43"
DEFAULT_DB_INSTANCE_IDENTIFIER = "db-2"
DEFAULT_MASTER_USERNAME = "admin"
DEFAULT_MASTER_USER_PASSWORD = "password"
DEFAULT_DB_INSTANCE_CLASS = "db.t4g.micro"
DEFAULT_ALLOCATED_STORAGE = 20
DEFAULT_BACKUP_RETENTION_PERIOD = 1
DEFAULT_CONFIG_FILE = ".rds-replica.yml"

MAX_BACKUP_RETENTION_PERIOD = 35
MIN_AVAILABILITY_ZONES = 2
REPLICA_IDENTIFIER_SUFFIX = "-replica"

KMS_KEY_SPEC = "SYMMETRIC_DEFAULT"
KMS_KEY_USAGE = "ENCRYPT_DECRYPT"
KMS_KEY_DESCRIPTIONS = {
    "primary": "KMS key for the primary RDS instance (required for cross-region replica)",
    "replica": "KMS key for the replica instance",
}

SUBNET_GROUP_TAG_KEY = "CreatedBy"
SUBNET_GROUP_TAG_VALUE = TOOL_NAME
SUBNET_GROUP_DESCRIPTION = "Auto-created DB subnet group for VPC {vpc_id}"

DB_INSTANCE_AVAILABLE_WAITER = "db_instance_available"
