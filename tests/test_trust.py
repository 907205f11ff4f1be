"""Tests for seqera_batch.iam.trust."""

from __future__ import annotations

from seqera_batch.derive.names import derive
from seqera_batch.iam.policies import ECS_TASKS_SERVICE, build_policies
from seqera_batch.iam.trust import (
    BATCH_SERVICE,
    EC2_SERVICE,
    SPOT_FLEET_SERVICE,
    assume_role_document,
    build_roles,
    managed_policy_arn,
)


def _roles(cfg):
    derived = derive(cfg)
    return derived, build_roles(derived, build_policies(cfg, derived))


class TestRoleSet:
    def test_on_demand_has_five_roles(self, cfg):
        _, roles = _roles(cfg)
        assert roles.spot_fleet is None
        assert [r.name for r in roles.all()] == [
            "demo-head-role",
            "demo-compute-instance-role",
            "demo-job-role",
            "demo-execution-role",
            "demo-batch-service-role",
        ]

    def test_spot_adds_fleet_role(self, make_cfg):
        _, roles = _roles(make_cfg(use_spot_instances=True))
        assert roles.spot_fleet is not None
        assert roles.spot_fleet.trusted_service == SPOT_FLEET_SERVICE
        assert roles.all()[-1].name == "demo-spot-fleet-role"
        assert roles.spot_fleet.managed_policy_arns == [
            "arn:aws:iam::aws:policy/service-role/AmazonEC2SpotFleetTaggingRole"
        ]

    def test_trusted_services(self, cfg):
        _, roles = _roles(cfg)
        assert roles.head.trusted_service == ECS_TASKS_SERVICE
        assert roles.job.trusted_service == ECS_TASKS_SERVICE
        assert roles.execution.trusted_service == ECS_TASKS_SERVICE
        assert roles.compute_instance.trusted_service == EC2_SERVICE
        assert roles.batch_service.trusted_service == BATCH_SERVICE


class TestAttachments:
    def test_job_document_shared(self, cfg):
        derived, roles = _roles(cfg)
        assert roles.compute_instance.policy_names == [derived.job_policy_name]
        assert roles.job.policy_names == [derived.job_policy_name]

    def test_head_document(self, cfg):
        derived, roles = _roles(cfg)
        assert roles.head.policy_names == [derived.head_policy_name]

    def test_compute_instance_managed(self, cfg):
        _, roles = _roles(cfg)
        assert roles.compute_instance.managed_policy_arns == [
            "arn:aws:iam::aws:policy/service-role/AmazonEC2ContainerServiceforEC2Role",
            "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore",
        ]

    def test_execution_has_no_custom_policy(self, cfg):
        _, roles = _roles(cfg)
        assert roles.execution.policy_names == []

    def test_partition_in_managed_arns(self, make_cfg):
        _, roles = _roles(make_cfg(region="cn-north-1"))
        assert roles.batch_service.managed_policy_arns == [
            "arn:aws-cn:iam::aws:policy/service-role/AWSBatchServiceRole"
        ]


class TestTrustDocument:
    def test_shape(self):
        doc = assume_role_document(EC2_SERVICE)
        assert doc["Version"] == "2012-10-17"
        (stmt,) = doc["Statement"]
        assert stmt == {
            "Effect": "Allow",
            "Principal": {"Service": "ec2.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }

    def test_role_spec_delegates(self, cfg):
        _, roles = _roles(cfg)
        assert roles.batch_service.trust_document() == assume_role_document(BATCH_SERVICE)

    def test_managed_policy_arn(self):
        assert (
            managed_policy_arn("ssm_core", "aws-us-gov")
            == "arn:aws-us-gov:iam::aws:policy/AmazonSSMManagedInstanceCore"
        )
