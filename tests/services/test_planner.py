import pytest

from rdsreplica.errors import ValidationError
from rdsreplica.models import DatabaseInstance, ProvisioningRequest, ReplicationMode
from rdsreplica.services.planner import (
    REPLICA_KEY_IGNORED,
    SECURITY_GROUPS_NOT_REUSABLE,
    build_primary_spec,
    build_replica_spec,
)

PRIMARY = DatabaseInstance(
    identifier="db-2",
    arn="arn:aws:rds:us-east-1:123456789012:db:db-2",
    status="available",
)


def _request(**overrides):
    values = {"primary_region": "us-east-1", "replica_region": "us-east-1"}
    values.update(overrides)
    return ProvisioningRequest(**values)


def test_primary_spec_without_key_has_no_encryption_fields():
    params = build_primary_spec(_request(), "group-1", None).to_api_params()

    assert params["DBInstanceIdentifier"] == "db-2"
    assert params["Engine"] == "mysql"
    assert params["EngineVersion"] == "8.0.43"
    assert params["DBInstanceClass"] == "db.t4g.micro"
    assert params["AllocatedStorage"] == 20
    assert params["BackupRetentionPeriod"] == 1
    assert params["DBSubnetGroupName"] == "group-1"
    assert "StorageEncrypted" not in params
    assert "KmsKeyId" not in params
    assert "VpcSecurityGroupIds" not in params
    assert "PubliclyAccessible" not in params


def test_primary_spec_with_key_forces_storage_encryption():
    request = _request(vpc_security_group_ids=("sg-1", "sg-2"), publicly_accessible=True)

    params = build_primary_spec(request, None, "key-1").to_api_params()

    assert params["StorageEncrypted"] is True
    assert params["KmsKeyId"] == "key-1"
    assert params["VpcSecurityGroupIds"] == ["sg-1", "sg-2"]
    assert params["PubliclyAccessible"] is True
    assert "DBSubnetGroupName" not in params


@pytest.mark.parametrize("subnet_group_name", [None, "resolved-group"])
def test_same_region_replica_never_sets_subnet_group(subnet_group_name):
    request = _request(vpc_security_group_ids=("sg-1",))

    plan = build_replica_spec(
        request,
        ReplicationMode.SAME_REGION,
        PRIMARY,
        subnet_group_name=subnet_group_name,
        kms_key_id="key-ignored",
    )
    params = plan.spec.to_api_params()

    assert "DBSubnetGroupName" not in params
    assert "SourceRegion" not in params
    assert "KmsKeyId" not in params
    assert params["SourceDBInstanceIdentifier"] == "db-2"
    assert params["DBInstanceIdentifier"] == "db-2-replica"
    assert params["VpcSecurityGroupIds"] == ["sg-1"]
    assert plan.warnings == []


def test_same_region_replica_prefers_replica_security_groups_and_warns_on_key():
    request = _request(
        vpc_security_group_ids=("sg-primary",),
        replica_vpc_security_group_ids=("sg-replica",),
        replica_kms_key_id="key-2",
    )

    plan = build_replica_spec(request, ReplicationMode.SAME_REGION, PRIMARY)

    assert plan.spec.vpc_security_group_ids == ("sg-replica",)
    assert plan.warnings == [REPLICA_KEY_IGNORED]


def test_cross_region_replica_uses_arn_source_region_and_encryption():
    request = _request(
        replica_region="eu-west-1",
        replica_vpc_security_group_ids=("sg-eu",),
        publicly_accessible=True,
    )

    plan = build_replica_spec(
        request,
        ReplicationMode.CROSS_REGION,
        PRIMARY,
        subnet_group_name="eu-group",
        kms_key_id="eu-key",
    )
    params = plan.spec.to_api_params()

    assert params["SourceDBInstanceIdentifier"] == PRIMARY.arn
    assert params["SourceRegion"] == "us-east-1"
    assert params["DBSubnetGroupName"] == "eu-group"
    assert params["StorageEncrypted"] is True
    assert params["KmsKeyId"] == "eu-key"
    assert params["VpcSecurityGroupIds"] == ["sg-eu"]
    assert params["PubliclyAccessible"] is True
    assert plan.warnings == []


def test_cross_region_replica_drops_primary_security_groups_with_warning():
    request = _request(replica_region="eu-west-1", vpc_security_group_ids=("sg-us",))

    plan = build_replica_spec(
        request,
        ReplicationMode.CROSS_REGION,
        PRIMARY,
        subnet_group_name="eu-group",
        kms_key_id="eu-key",
    )

    assert "VpcSecurityGroupIds" not in plan.spec.to_api_params()
    assert plan.warnings == [SECURITY_GROUPS_NOT_REUSABLE]


def test_cross_region_replica_requires_key():
    request = _request(replica_region="eu-west-1")

    with pytest.raises(ValidationError, match="has no KMS key"):
        build_replica_spec(
            request,
            ReplicationMode.CROSS_REGION,
            PRIMARY,
            subnet_group_name="eu-group",
            kms_key_id=None,
        )


def test_replica_instance_class_falls_back_and_can_be_omitted():
    inherited = build_replica_spec(
        _request(db_instance_class=None), ReplicationMode.SAME_REGION, PRIMARY
    )
    override = build_replica_spec(
        _request(replica_db_instance_class="db.r6g.large"), ReplicationMode.SAME_REGION, PRIMARY
    )
    same = build_replica_spec(_request(), ReplicationMode.SAME_REGION, PRIMARY)

    assert "DBInstanceClass" not in inherited.spec.to_api_params()
    assert override.spec.to_api_params()["DBInstanceClass"] == "db.r6g.large"
    assert same.spec.to_api_params()["DBInstanceClass"] == "db.t4g.micro"


def test_replica_identifier_can_be_overridden():
    plan = build_replica_spec(
        _request(replica_db_instance_identifier="reporting"),
        ReplicationMode.SAME_REGION,
        PRIMARY,
    )

    assert plan.spec.db_instance_identifier == "reporting"
