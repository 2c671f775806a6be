"""KMS key bootstrap for encrypted cross-region replication."""

from typing import List, Optional

from rdsreplica.constants import KMS_KEY_DESCRIPTIONS, KMS_KEY_SPEC, KMS_KEY_USAGE
from rdsreplica.models import EncryptionKey
from rdsreplica.services.clients import RegionContext, provider_call


class EncryptionBootstrapper:
    """Returns a usable KMS key id for a region, creating one when none was given.

    Keys are never looked up or reused: every call without an explicit key id
    creates a new billed key. ``created_keys`` keeps track of them so the caller
    can report what this run left behind.
    """

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console
        self.created_keys: List[EncryptionKey] = []

    def ensure_encryption_key(
        self,
        region_context: RegionContext,
        explicit_key_id: Optional[str],
        purpose: str,
    ) -> str:
        if explicit_key_id:
            self.logger.debug(
                "Using supplied %s KMS key in %s: %s",
                purpose,
                region_context.region,
                explicit_key_id,
            )
            return explicit_key_id

        self.console.print(
            f"[blue]Creating new KMS key for {purpose} instance in {region_context.region}...[/blue]"
        )
        with provider_call("CreateKey"):
            response = region_context.kms.create_key(
                Description=KMS_KEY_DESCRIPTIONS[purpose],
                KeySpec=KMS_KEY_SPEC,
                KeyUsage=KMS_KEY_USAGE,
            )

        metadata = response["KeyMetadata"]
        key = EncryptionKey(
            key_id=metadata["KeyId"],
            region=region_context.region,
            purpose=purpose,
            arn=metadata.get("Arn"),
        )
        self.created_keys.append(key)
        self.logger.info("New KMS key created for %s in %s: %s", purpose, key.region, key.key_id)
        self.console.print(f"[green]New KMS key created for {purpose}: {key.key_id}[/green]")
        return key.key_id
