"""Region-scoped boto3 client factory for rds-replica."""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from rdsreplica.constants import TOOL_NAME
from rdsreplica.errors import ProviderError


@contextmanager
def provider_call(operation: str) -> Iterator[None]:
    """Translate botocore failures raised inside the block into ProviderError."""
    try:
        yield
    except ClientError as exc:
        error = exc.response.get("Error", {})
        raise ProviderError(
            code=error.get("Code", "Unknown"),
            message=error.get("Message", str(exc)),
            operation=operation,
        ) from exc
    except BotoCoreError as exc:
        raise ProviderError(
            code=type(exc).__name__,
            message=str(exc),
            operation=operation,
        ) from exc


@dataclass(frozen=True)
class AwsSettings:
    """Credential and region inputs for the boto3 session.

    Explicit keys are used only when both the key id and the secret are present;
    otherwise boto3 falls back to its default credential chain (environment,
    shared credentials file, instance profile).
    """

    profile_name: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region_name: Optional[str] = None

    @property
    def has_explicit_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


class RegionalClientFactory:
    """Builds and caches one client per (service, region) pair."""

    def __init__(self, settings: Optional[AwsSettings] = None, session=None):
        self.settings = settings or AwsSettings()
        self._session = session
        self._clients: Dict[Tuple[str, str], Any] = {}
        self._config = Config(user_agent_extra=TOOL_NAME)

    @property
    def session(self):
        if self._session is None:
            kwargs: Dict[str, Any] = {}
            if self.settings.profile_name:
                kwargs["profile_name"] = self.settings.profile_name
            if self.settings.has_explicit_credentials:
                kwargs["aws_access_key_id"] = self.settings.access_key_id
                kwargs["aws_secret_access_key"] = self.settings.secret_access_key
            if self.settings.region_name:
                kwargs["region_name"] = self.settings.region_name
            with provider_call("CreateSession"):
                self._session = boto3.Session(**kwargs)
        return self._session

    @property
    def default_region(self) -> Optional[str]:
        return self.settings.region_name or self.session.region_name

    def client(self, service_name: str, region: str):
        key = (service_name, region)
        if key not in self._clients:
            with provider_call(f"CreateClient({service_name}, {region})"):
                self._clients[key] = self.session.client(
                    service_name,
                    region_name=region,
                    config=self._config,
                )
        return self._clients[key]

    def region(self, region: str) -> "RegionContext":
        return RegionContext(region=region, factory=self)


@dataclass(frozen=True)
class RegionContext:
    """A region plus access to the RDS, EC2 and KMS clients scoped to it."""

    region: str
    factory: Any

    @property
    def rds(self):
        return self.factory.client("rds", self.region)

    @property
    def ec2(self):
        return self.factory.client("ec2", self.region)

    @property
    def kms(self):
        return self.factory.client("kms", self.region)
