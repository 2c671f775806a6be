import logging
import uuid
from dataclasses import asdict
from typing import Optional

from rich.console import Console

from .constants import MAX_BACKUP_RETENTION_PERIOD
from .errors import ProviderError, ProvisioningError, ValidationError
from .errors_catalog import actionable_error
from .models import (
    DatabaseInstance,
    ProvisioningRequest,
    ProvisioningResult,
    ReplicationMode,
)
from .services.clients import RegionalClientFactory, provider_call
from .services.encryption import EncryptionBootstrapper
from .services.manifest import ManifestService
from .services.planner import build_primary_spec, build_replica_spec
from .services.prompt import ChoicePrompt, RichChoicePrompt
from .services.subnet_groups import SubnetGroupResolver
from .services.waiter import AvailabilityWaiter

console = Console()
logger = logging.getLogger("rdsreplica")


class ReplicaProvisioner:
    """Creates a primary RDS instance and a read replica, one stage at a time."""

    def __init__(
        self,
        request: ProvisioningRequest,
        client_factory: RegionalClientFactory,
        prompt: Optional[ChoicePrompt] = None,
        manifest_file: Optional[str] = None,
    ):
        self.request = request
        self.client_factory = client_factory
        self.prompt = prompt or RichChoicePrompt(console)

        self.primary_context = client_factory.region(request.primary_region)
        self.replica_context = client_factory.region(request.replica_region)

        self.manifest_service = ManifestService(manifest_file=manifest_file, logger=logger)
        self.encryption_bootstrapper = EncryptionBootstrapper(logger=logger, console=console)
        self.subnet_group_resolver = SubnetGroupResolver(
            logger=logger,
            console=console,
            prompt=self.prompt,
        )
        self.availability_waiter = AvailabilityWaiter(logger=logger, console=console)

        self.run_id = uuid.uuid4().hex[:10]
        self.current_step_name: Optional[str] = None
        self.warnings = []

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.manifest_service.step_started(name)
        self.current_step_name = name
        logger.debug("Starting step: %s", name)

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            self.manifest_service.step_finished(name, "failed", error=str(exc))
            raise

        self.manifest_service.step_finished(name, "success")
        self.current_step_name = None
        return result

    def _warn(self, message: str):
        logger.warning(message)
        console.print(f"[yellow]Warning:[/yellow] {message}")
        self.warnings.append(message)
        self.manifest_service.add_warning(message)

    def validate_request(self):
        retention = self.request.backup_retention_period
        if retention < 0 or retention > MAX_BACKUP_RETENTION_PERIOD:
            raise ValidationError(actionable_error("backup_retention_range", value=str(retention)))
        if not self.request.primary_region or not self.request.replica_region:
            raise ValidationError(actionable_error("no_region"))
        if retention == 0:
            self._warn(actionable_error("backups_disabled"))

    def determine_replication_mode(self) -> ReplicationMode:
        mode = self.request.replication_mode
        self.manifest_service.set_replication_mode(mode.value)
        if mode is ReplicationMode.CROSS_REGION:
            console.print(
                f"[blue]Cross-region replication: {self.request.primary_region} -> "
                f"{self.request.replica_region}[/blue]"
            )
        else:
            console.print(f"[blue]Same-region replication in {self.request.primary_region}[/blue]")
        return mode

    def ensure_primary_encryption_key(self) -> str:
        console.print(
            "[blue]Cross-region replicas require encryption. Preparing KMS key for primary instance...[/blue]"
        )
        return self._ensure_key(self.primary_context, self.request.kms_key_id, "primary")

    def ensure_replica_encryption_key(self) -> str:
        return self._ensure_key(self.replica_context, self.request.replica_kms_key_id, "replica")

    def _ensure_key(self, region_context, explicit_key_id: Optional[str], purpose: str) -> str:
        created_before = len(self.encryption_bootstrapper.created_keys)
        key_id = self.encryption_bootstrapper.ensure_encryption_key(
            region_context,
            explicit_key_id,
            purpose,
        )
        for key in self.encryption_bootstrapper.created_keys[created_before:]:
            self.manifest_service.add_resource("kms_keys", asdict(key))
        return key_id

    def resolve_primary_subnet_group(self) -> str:
        console.print("[blue]No DB subnet group specified. Attempting to find or create one...[/blue]")
        return self._resolve_subnet_group(self.primary_context)

    def resolve_replica_subnet_group(self) -> str:
        console.print("[blue]Finding or creating DB subnet group in replica region...[/blue]")
        return self._resolve_subnet_group(self.replica_context)

    def _resolve_subnet_group(self, region_context) -> str:
        created_before = len(self.subnet_group_resolver.created_groups)
        name = self.subnet_group_resolver.resolve_subnet_group(region_context)
        for group in self.subnet_group_resolver.created_groups[created_before:]:
            self.manifest_service.add_resource(
                "db_subnet_groups",
                {
                    "name": group.name,
                    "region": region_context.region,
                    "vpc_id": group.vpc_id,
                    "subnet_ids": [subnet.subnet_id for subnet in group.subnets],
                },
            )
        return name

    def create_primary_instance(self, subnet_group_name: Optional[str], kms_key_id: Optional[str]):
        spec = build_primary_spec(self.request, subnet_group_name, kms_key_id)
        if spec.db_subnet_group_name:
            logger.info("Using DB subnet group: %s", spec.db_subnet_group_name)
        if spec.vpc_security_group_ids:
            logger.info("Using VPC security groups: %s", ", ".join(spec.vpc_security_group_ids))
        if spec.publicly_accessible:
            logger.info("DB instance will be publicly accessible")
        if spec.storage_encrypted:
            logger.info("Using KMS key for primary: %s", spec.kms_key_id)

        console.print(f"[blue]Creating primary instance {spec.db_instance_identifier}...[/blue]")
        with provider_call("CreateDBInstance"):
            response = self.primary_context.rds.create_db_instance(**spec.to_api_params())

        instance = DatabaseInstance.from_api(response["DBInstance"], region=self.request.primary_region)
        self.manifest_service.add_resource("db_instances", {"role": "primary", **asdict(instance)})
        return instance

    def create_replica_instance(
        self,
        mode: ReplicationMode,
        primary: DatabaseInstance,
        subnet_group_name: Optional[str],
        kms_key_id: Optional[str],
    ):
        plan = build_replica_spec(self.request, mode, primary, subnet_group_name, kms_key_id)
        for message in plan.warnings:
            self._warn(message)

        spec = plan.spec
        if spec.db_subnet_group_name:
            logger.info("Using DB subnet group in replica region: %s", spec.db_subnet_group_name)
        if spec.vpc_security_group_ids:
            logger.info("Using VPC security groups for replica: %s", ", ".join(spec.vpc_security_group_ids))

        console.print(
            f"[blue]Creating read replica {spec.db_instance_identifier} in {self.request.replica_region}...[/blue]"
        )
        with provider_call("CreateDBInstanceReadReplica"):
            response = self.replica_context.rds.create_db_instance_read_replica(
                **spec.to_api_params()
            )

        instance = DatabaseInstance.from_api(response["DBInstance"], region=self.request.replica_region)
        self.manifest_service.add_resource("db_instances", {"role": "replica", **asdict(instance)})
        return instance

    def provision(self) -> ProvisioningResult:
        request = self.request
        self.validate_request()

        mode = self._run_step("determine_replication_mode", self.determine_replication_mode)
        cross_region = mode is ReplicationMode.CROSS_REGION

        primary_key_id = request.kms_key_id
        if cross_region and not primary_key_id:
            primary_key_id = self._run_step(
                "ensure_primary_encryption_key",
                self.ensure_primary_encryption_key,
            )

        primary_subnet_group = request.db_subnet_group_name
        if not primary_subnet_group:
            primary_subnet_group = self._run_step(
                "resolve_primary_subnet_group",
                self.resolve_primary_subnet_group,
            )

        primary = self._run_step(
            "create_primary_instance",
            self.create_primary_instance,
            primary_subnet_group,
            primary_key_id,
        )
        self._run_step(
            "wait_for_primary_instance",
            self.availability_waiter.wait_until_available,
            self.primary_context,
            primary.identifier,
        )
        console.print(f"[green]Primary instance created: {primary.arn}[/green]")

        replica_subnet_group = None
        replica_key_id = None
        if cross_region:
            replica_subnet_group = request.replica_db_subnet_group_name
            if not replica_subnet_group:
                replica_subnet_group = self._run_step(
                    "resolve_replica_subnet_group",
                    self.resolve_replica_subnet_group,
                )
            replica_key_id = request.replica_kms_key_id
            if not replica_key_id:
                replica_key_id = self._run_step(
                    "ensure_replica_encryption_key",
                    self.ensure_replica_encryption_key,
                )

        replica = self._run_step(
            "create_replica_instance",
            self.create_replica_instance,
            mode,
            primary,
            replica_subnet_group,
            replica_key_id,
        )
        self._run_step(
            "wait_for_replica_instance",
            self.availability_waiter.wait_until_available,
            self.replica_context,
            replica.identifier,
        )
        console.print(f"[green]Replica instance created: {replica.arn}[/green]")

        return ProvisioningResult(
            replication_mode=mode,
            primary=primary,
            replica=replica,
            created_keys=list(self.encryption_bootstrapper.created_keys),
            created_subnet_groups=list(self.subnet_group_resolver.created_groups),
            warnings=list(self.warnings),
        )

    def _report_leftovers(self):
        resources = self.manifest_service.manifest["resources"]
        created = [
            f"{kind}: {item.get('name') or item.get('key_id') or item.get('identifier')}"
            for kind, items in resources.items()
            for item in items
        ]
        if created:
            logger.warning(
                "Resources created before the failure were left in place: %s",
                "; ".join(created),
            )

    def run(self) -> int:
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            logger.info("Starting rds-replica run %s...", self.run_id)
            self.manifest_service.start_run(run_id=self.run_id, metadata=self.request.describe())

            result = self.provision()

            logger.info("Primary instance: %s", result.primary.arn)
            logger.info("Replica instance: %s", result.replica.arn)
            manifest_status = "success"
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            self._report_leftovers()
            return 1
        except ProviderError as exc:
            console.print(f"[bold red]AWS error ({exc.code}):[/bold red] {exc.message}")
            logger.error(str(exc))
            manifest_error = str(exc)
            self._report_leftovers()
            return 1
        except ProvisioningError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            manifest_error = str(exc)
            self._report_leftovers()
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_error = str(exc)
            self._report_leftovers()
            return 1
        finally:
            if manifest_error and self.current_step_name:
                manifest_error = f"{self.current_step_name}: {manifest_error}"
            self.manifest_service.finalize(manifest_status, error=manifest_error)
