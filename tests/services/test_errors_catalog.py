import pytest

from rdsreplica.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("insufficient_azs", vpc_id="vpc-1", region="eu-west-1", zone_count="1")

    assert "Subnets in VPC vpc-1 (eu-west-1) span 1 availability zone(s)" in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError, match="Unknown error catalog key"):
        actionable_error("does_not_exist")
