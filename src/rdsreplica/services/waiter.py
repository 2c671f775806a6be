"""Blocking readiness waits for DB instances."""

from botocore.exceptions import BotoCoreError, WaiterError

from rdsreplica.constants import DB_INSTANCE_AVAILABLE_WAITER
from rdsreplica.errors import ProviderError
from rdsreplica.models import WaitOutcome
from rdsreplica.services.clients import RegionContext, provider_call


def _last_observed_status(last_response):
    if not isinstance(last_response, dict):
        return None
    instances = last_response.get("DBInstances") or [{}]
    return instances[0].get("DBInstanceStatus")


class AvailabilityWaiter:
    """Waits on the RDS ``db_instance_available`` waiter with its default policy."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def wait_until_available(self, region_context: RegionContext, identifier: str) -> WaitOutcome:
        self.logger.info("Waiting for %s in %s to be available...", identifier, region_context.region)
        waiter = region_context.rds.get_waiter(DB_INSTANCE_AVAILABLE_WAITER)

        try:
            with self.console.status(f"[yellow]Waiting for {identifier} to be available...[/yellow]"):
                waiter.wait(DBInstanceIdentifier=identifier)
        except WaiterError as exc:
            status = _last_observed_status(exc.last_response)
            outcome = WaitOutcome(identifier=identifier, succeeded=False, status=status)
            error = {}
            if isinstance(exc.last_response, dict):
                error = exc.last_response.get("Error", {})
            raise ProviderError(
                code=error.get("Code", "WaiterTimeout"),
                message=f"{identifier} did not become available (last status: {status or 'unknown'}). "
                f"{exc.kwargs.get('reason', '')}".strip(),
                operation="WaitUntilDBInstanceAvailable",
                outcome=outcome,
            ) from exc
        except BotoCoreError as exc:
            raise ProviderError(
                code=type(exc).__name__,
                message=str(exc),
                operation="WaitUntilDBInstanceAvailable",
                outcome=WaitOutcome(identifier=identifier, succeeded=False, status=None),
            ) from exc

        with provider_call("DescribeDBInstances"):
            response = region_context.rds.describe_db_instances(DBInstanceIdentifier=identifier)
        status = _last_observed_status(response) or "available"

        self.console.print(f"[green]{identifier} is available.[/green]")
        return WaitOutcome(identifier=identifier, succeeded=True, status=status)
