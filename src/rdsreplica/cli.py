import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_ALLOCATED_STORAGE,
    DEFAULT_BACKUP_RETENTION_PERIOD,
    DEFAULT_CONFIG_FILE,
    DEFAULT_DB_INSTANCE_CLASS,
    DEFAULT_DB_INSTANCE_IDENTIFIER,
    DEFAULT_ENGINE,
    DEFAULT_ENGINE_VERSION,
    DEFAULT_MASTER_USER_PASSWORD,
    DEFAULT_MASTER_USERNAME,
)
from .core import ReplicaProvisioner, console
from .errors import ProvisioningError
from .errors_catalog import actionable_error
from .models import ProvisioningRequest
from .services.clients import AwsSettings, RegionalClientFactory
from .services.config_loader import ConfigLoader
from .services.prompt import DefaultChoicePrompt, RichChoicePrompt


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None and cli_value != ():
        return cli_value
    if key in config:
        return config[key]
    return default


def _split_ids(values):
    """Accept repeated flags, comma-separated values, or a YAML list."""
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    ids = []
    for value in values:
        ids.extend(part.strip() for part in str(value).split(",") if part.strip())
    return tuple(ids)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--engine", required=False, help=f"The engine to use (default: {DEFAULT_ENGINE})")
@click.option(
    "--engine-version",
    required=False,
    help=f"The version of the engine to use (default: {DEFAULT_ENGINE_VERSION})",
)
@click.option(
    "--db-instance-identifier",
    required=False,
    help=f"The identifier of the primary instance (default: {DEFAULT_DB_INSTANCE_IDENTIFIER})",
)
@click.option("--master-username", required=False, help="The username of the master user")
@click.option("--master-user-password", required=False, help="The password of the master user")
@click.option(
    "--db-instance-class",
    required=False,
    help=f"The class of the DB instance (default: {DEFAULT_DB_INSTANCE_CLASS})",
)
@click.option("--allocated-storage", type=int, required=False, help="The allocated storage in GB")
@click.option("--db-subnet-group-name", required=False, help="The DB subnet group for the primary")
@click.option(
    "--vpc-security-group-ids",
    multiple=True,
    help="VPC security group IDs for the primary (repeatable or comma-separated).",
)
@click.option(
    "--replica-vpc-security-group-ids",
    multiple=True,
    help="VPC security group IDs for the replica (region-specific).",
)
@click.option(
    "--publicly-accessible",
    is_flag=True,
    default=None,
    help="Make the DB instances publicly accessible.",
)
@click.option("--kms-key-id", required=False, help="KMS key for the primary instance")
@click.option(
    "--backup-retention-period",
    type=int,
    required=False,
    help="Days to retain automated backups, 0-35 (default: 1)",
)
@click.option("--primary-region", required=False, help="Region of the primary instance")
@click.option("--replica-region", required=False, help="Region of the replica instance")
@click.option("--replica-kms-key-id", required=False, help="KMS key for a cross-region replica")
@click.option(
    "--replica-db-subnet-group-name",
    required=False,
    help="DB subnet group in the replica region (cross-region only).",
)
@click.option(
    "--replica-db-instance-identifier",
    required=False,
    help="Identifier of the replica (default: <db-instance-identifier>-replica)",
)
@click.option(
    "--replica-db-instance-class",
    required=False,
    help="Instance class of the replica (default: same as the primary)",
)
@click.option(
    "--region",
    required=False,
    help="Default AWS region for both instances (default: the session's configured region)",
)
@click.option("--profile", required=False, help="AWS profile name")
@click.option("--aws-access-key-id", required=False, help="Explicit AWS access key id")
@click.option("--aws-secret-access-key", required=False, help="Explicit AWS secret access key")
@click.option(
    "--non-interactive",
    is_flag=True,
    default=None,
    help="Never prompt; take the default option whenever a choice is needed.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--manifest-file",
    required=False,
    type=click.Path(),
    help="Write a JSON manifest of steps and created resources to this path.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    engine,
    engine_version,
    db_instance_identifier,
    master_username,
    master_user_password,
    db_instance_class,
    allocated_storage,
    db_subnet_group_name,
    vpc_security_group_ids,
    replica_vpc_security_group_ids,
    publicly_accessible,
    kms_key_id,
    backup_retention_period,
    primary_region,
    replica_region,
    replica_kms_key_id,
    replica_db_subnet_group_name,
    replica_db_instance_identifier,
    replica_db_instance_class,
    region,
    profile,
    aws_access_key_id,
    aws_secret_access_key,
    non_interactive,
    config,
    manifest_file,
    verbose,
    log_file,
):
    """Create a new RDS instance with a read replica."""
    logger = logging.getLogger("rdsreplica")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    settings = AwsSettings(
        profile_name=_resolve_option(profile, config_values, "profile"),
        region_name=_resolve_option(region, config_values, "region"),
        access_key_id=_resolve_option(aws_access_key_id, config_values, "aws_access_key_id"),
        secret_access_key=_resolve_option(
            aws_secret_access_key, config_values, "aws_secret_access_key"
        ),
    )
    client_factory = RegionalClientFactory(settings)
    if settings.has_explicit_credentials:
        logger.info("Using explicit AWS credentials")
    else:
        logger.debug("Using the default AWS credential provider chain")

    try:
        primary_region = _resolve_option(primary_region, config_values, "primary_region")
        replica_region = _resolve_option(replica_region, config_values, "replica_region")
        if not primary_region or not replica_region:
            default_region = client_factory.default_region
            primary_region = primary_region or default_region
            replica_region = replica_region or default_region
        if not primary_region or not replica_region:
            raise click.ClickException(actionable_error("no_region"))

        request = ProvisioningRequest(
            primary_region=primary_region,
            replica_region=replica_region,
            engine=_resolve_option(engine, config_values, "engine", default=DEFAULT_ENGINE),
            engine_version=str(
                _resolve_option(
                    engine_version, config_values, "engine_version", default=DEFAULT_ENGINE_VERSION
                )
            ),
            db_instance_identifier=_resolve_option(
                db_instance_identifier,
                config_values,
                "db_instance_identifier",
                default=DEFAULT_DB_INSTANCE_IDENTIFIER,
            ),
            master_username=_resolve_option(
                master_username, config_values, "master_username", default=DEFAULT_MASTER_USERNAME
            ),
            master_user_password=str(
                _resolve_option(
                    master_user_password,
                    config_values,
                    "master_user_password",
                    default=DEFAULT_MASTER_USER_PASSWORD,
                )
            ),
            db_instance_class=_resolve_option(
                db_instance_class,
                config_values,
                "db_instance_class",
                default=DEFAULT_DB_INSTANCE_CLASS,
            ),
            allocated_storage=int(
                _resolve_option(
                    allocated_storage,
                    config_values,
                    "allocated_storage",
                    default=DEFAULT_ALLOCATED_STORAGE,
                )
            ),
            backup_retention_period=int(
                _resolve_option(
                    backup_retention_period,
                    config_values,
                    "backup_retention_period",
                    default=DEFAULT_BACKUP_RETENTION_PERIOD,
                )
            ),
            db_subnet_group_name=_resolve_option(
                db_subnet_group_name, config_values, "db_subnet_group_name"
            ),
            replica_db_subnet_group_name=_resolve_option(
                replica_db_subnet_group_name, config_values, "replica_db_subnet_group_name"
            ),
            vpc_security_group_ids=_split_ids(
                _resolve_option(vpc_security_group_ids, config_values, "vpc_security_group_ids")
            ),
            replica_vpc_security_group_ids=_split_ids(
                _resolve_option(
                    replica_vpc_security_group_ids,
                    config_values,
                    "replica_vpc_security_group_ids",
                )
            ),
            publicly_accessible=bool(
                _resolve_option(
                    publicly_accessible, config_values, "publicly_accessible", default=False
                )
            ),
            kms_key_id=_resolve_option(kms_key_id, config_values, "kms_key_id"),
            replica_kms_key_id=_resolve_option(
                replica_kms_key_id, config_values, "replica_kms_key_id"
            ),
            replica_db_instance_class=_resolve_option(
                replica_db_instance_class, config_values, "replica_db_instance_class"
            ),
            replica_db_instance_identifier=_resolve_option(
                replica_db_instance_identifier, config_values, "replica_db_instance_identifier"
            ),
        )
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc

    non_interactive = bool(
        _resolve_option(non_interactive, config_values, "non_interactive", default=False)
    )
    prompt = DefaultChoicePrompt(logger) if non_interactive else RichChoicePrompt(console)

    provisioner = ReplicaProvisioner(
        request=request,
        client_factory=client_factory,
        prompt=prompt,
        manifest_file=_resolve_option(manifest_file, config_values, "manifest_file"),
    )

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
