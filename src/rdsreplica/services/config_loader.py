"""Configuration loader for rds-replica."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from rdsreplica.errors import ProvisioningError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "engine",
        "engine_version",
        "db_instance_identifier",
        "master_username",
        "master_user_password",
        "db_instance_class",
        "allocated_storage",
        "db_subnet_group_name",
        "vpc_security_group_ids",
        "replica_vpc_security_group_ids",
        "publicly_accessible",
        "kms_key_id",
        "backup_retention_period",
        "primary_region",
        "replica_region",
        "replica_kms_key_id",
        "replica_db_subnet_group_name",
        "replica_db_instance_identifier",
        "replica_db_instance_class",
        "region",
        "profile",
        "aws_access_key_id",
        "aws_secret_access_key",
        "non_interactive",
        "manifest_file",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisioningError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisioningError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisioningError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ProvisioningError(f"Unknown configuration keys: {unknown_list}")

        return parsed
