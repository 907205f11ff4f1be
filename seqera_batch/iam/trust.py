"""IAM roles: trust documents and policy attachments.

Role layout::

    role               trusted service            custom policy   AWS managed policies
    -----------------  -------------------------  --------------  -------------------------------------
    head               ecs-tasks                  head            -
    compute instance   ec2                        job             AmazonEC2ContainerServiceforEC2Role,
                                                                  AmazonSSMManagedInstanceCore
    job (task run)     ecs-tasks                  job             -
    execution          ecs-tasks                  -               AmazonECSTaskExecutionRolePolicy
    batch service      batch                      -               AWSBatchServiceRole
    spot fleet         spotfleet                  -               AmazonEC2SpotFleetTaggingRole

The spot fleet role only exists when Spot instances are enabled; it is
``None`` otherwise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from seqera_batch.derive.names import DerivedNames
from seqera_batch.iam.policies import ECS_TASKS_SERVICE, POLICY_VERSION, PolicySet

EC2_SERVICE = "ec2.amazonaws.com"
BATCH_SERVICE = "batch.amazonaws.com"
SPOT_FLEET_SERVICE = "spotfleet.amazonaws.com"

_MANAGED = {
    "ecs_instance": "policy/service-role/AmazonEC2ContainerServiceforEC2Role",
    "ssm_core": "policy/AmazonSSMManagedInstanceCore",
    "ecs_task_execution": "policy/service-role/AmazonECSTaskExecutionRolePolicy",
    "batch_service": "policy/service-role/AWSBatchServiceRole",
    "spot_fleet_tagging": "policy/service-role/AmazonEC2SpotFleetTaggingRole",
}


def managed_policy_arn(key: str, partition: str = "aws") -> str:
    """Return the ARN of an AWS managed policy from :data:`_MANAGED`."""
    return f"arn:{partition}:iam::aws:{_MANAGED[key]}"


def assume_role_document(service: str) -> Dict[str, Any]:
    """Trust document allowing *service* to assume the role."""
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": service},
                "Action": "sts:AssumeRole",
            }
        ],
    }


class RoleSpec(BaseModel):
    """One IAM role and what is attached to it.

    ``policy_names`` reference documents in the :class:`PolicySet` by name,
    so a document shared by several roles is defined once.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    trusted_service: str
    policy_names: List[str] = Field(default_factory=list)
    managed_policy_arns: List[str] = Field(default_factory=list)

    def trust_document(self) -> Dict[str, Any]:
        return assume_role_document(self.trusted_service)


class RoleSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    head: RoleSpec
    compute_instance: RoleSpec
    job: RoleSpec
    execution: RoleSpec
    batch_service: RoleSpec
    spot_fleet: Optional[RoleSpec] = None

    def all(self) -> List[RoleSpec]:
        """Roles in creation order, skipping absent ones."""
        roles = [
            self.head,
            self.compute_instance,
            self.job,
            self.execution,
            self.batch_service,
            self.spot_fleet,
        ]
        return [r for r in roles if r is not None]


def build_roles(derived: DerivedNames, policies: PolicySet) -> RoleSet:
    """Describe every role of the environment."""
    part = derived.partition
    spot_fleet: Optional[RoleSpec] = None
    if derived.spot_fleet_role_name:
        spot_fleet = RoleSpec(
            name=derived.spot_fleet_role_name,
            trusted_service=SPOT_FLEET_SERVICE,
            managed_policy_arns=[managed_policy_arn("spot_fleet_tagging", part)],
        )

    return RoleSet(
        head=RoleSpec(
            name=derived.head_role_name,
            trusted_service=ECS_TASKS_SERVICE,
            policy_names=[policies.head.name],
        ),
        compute_instance=RoleSpec(
            name=derived.compute_instance_role_name,
            trusted_service=EC2_SERVICE,
            policy_names=[policies.job.name],
            managed_policy_arns=[
                managed_policy_arn("ecs_instance", part),
                managed_policy_arn("ssm_core", part),
            ],
        ),
        job=RoleSpec(
            name=derived.job_role_name,
            trusted_service=ECS_TASKS_SERVICE,
            policy_names=[policies.job.name],
        ),
        execution=RoleSpec(
            name=derived.execution_role_name,
            trusted_service=ECS_TASKS_SERVICE,
            managed_policy_arns=[managed_policy_arn("ecs_task_execution", part)],
        ),
        batch_service=RoleSpec(
            name=derived.batch_service_role_name,
            trusted_service=BATCH_SERVICE,
            managed_policy_arns=[managed_policy_arn("batch_service", part)],
        ),
        spot_fleet=spot_fleet,
    )
