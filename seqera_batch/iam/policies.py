"""IAM permission documents for the Batch environment.

Three documents are built from :class:`DerivedNames`:

- **job** — S3 access to the work bucket plus any additional buckets and
  log-stream writes.  Attached, as the same document, to the compute
  instance role and to the task-run (job) role.
- **head** — everything in *job*, plus what the Nextflow head job needs to
  drive AWS Batch: job submission and introspection, log retrieval,
  ``tower-*`` secret reads with the matching KMS decrypt, and
  ``iam:PassRole`` on the task-execution and task-run roles.
- **pass_role** — attached to the Seqera Platform IAM user; lets the
  platform hand the head, task-run and task-execution roles to Batch.

The roles that may be delegated are listed once in
:data:`DELEGATABLE_IDENTITIES`; both ``iam:PassRole`` statements are
generated from it, so the head and platform documents cannot drift apart.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from seqera_batch.config.models import InputConfig
from seqera_batch.derive.names import DerivedNames

logger = logging.getLogger(__name__)

POLICY_VERSION = "2012-10-17"

BATCH_JOB_LOG_GROUP = "/aws/batch/job"
PLATFORM_SECRET_PREFIX = "tower-"
ECS_TASKS_SERVICE = "ecs-tasks.amazonaws.com"


# ---------------------------------------------------------------------------
# Delegatable identities
# ---------------------------------------------------------------------------


class DelegatableIdentity(NamedTuple):
    """A role that may be passed to AWS Batch on someone's behalf.

    Attributes:
        key: Stable identifier used in plan output.
        role_name_field: :class:`DerivedNames` attribute holding the role name.
        head_delegates: True if the head job itself passes this role.
    """

    key: str
    role_name_field: str
    head_delegates: bool


DELEGATABLE_IDENTITIES: Tuple[DelegatableIdentity, ...] = (
    DelegatableIdentity("head", "head_role_name", head_delegates=False),
    DelegatableIdentity("task_run", "job_role_name", head_delegates=True),
    DelegatableIdentity("task_execution", "execution_role_name", head_delegates=True),
)


def delegatable_role_arns(
    derived: DerivedNames,
    *,
    head_only: bool = False,
) -> List[str]:
    """Return role ARNs from :data:`DELEGATABLE_IDENTITIES` in declaration order.

    With *head_only* set, only identities the head job delegates are kept.
    """
    return [
        derived.role_arn(getattr(derived, ident.role_name_field))
        for ident in DELEGATABLE_IDENTITIES
        if ident.head_delegates or not head_only
    ]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Effect(str, Enum):
    ALLOW = "Allow"
    DENY = "Deny"


class PolicyStatement(BaseModel):
    """One IAM statement with explicit action and resource lists."""

    model_config = ConfigDict(frozen=True)

    sid: str
    effect: Effect = Effect.ALLOW
    actions: List[str]
    resources: List[str]
    condition: Optional[Dict[str, Dict[str, Any]]] = None

    def to_iam(self) -> Dict[str, Any]:
        """Render as an IAM JSON statement."""
        stmt: Dict[str, Any] = {
            "Sid": self.sid,
            "Effect": self.effect.value,
            "Action": list(self.actions),
            "Resource": list(self.resources),
        }
        if self.condition:
            stmt["Condition"] = self.condition
        return stmt


class PolicyDocument(BaseModel):
    """A named, ordered list of statements."""

    model_config = ConfigDict(frozen=True)

    name: str
    statements: List[PolicyStatement] = Field(default_factory=list)

    def to_iam(self) -> Dict[str, Any]:
        """Render as an IAM JSON policy document."""
        return {
            "Version": POLICY_VERSION,
            "Statement": [s.to_iam() for s in self.statements],
        }

    def statement(self, sid: str) -> Optional[PolicyStatement]:
        """Return the statement with *sid*, or ``None``."""
        for stmt in self.statements:
            if stmt.sid == sid:
                return stmt
        return None

    def pass_role_targets(self) -> List[str]:
        """Return every resource named by an ``iam:PassRole`` statement."""
        targets: List[str] = []
        for stmt in self.statements:
            if "iam:PassRole" in stmt.actions:
                targets.extend(stmt.resources)
        return targets


class PolicySet(BaseModel):
    """The three documents produced by :func:`build_policies`."""

    model_config = ConfigDict(frozen=True)

    job: PolicyDocument
    head: PolicyDocument
    pass_role: PolicyDocument

    def to_iam(self) -> Dict[str, Dict[str, Any]]:
        """Map of policy name → IAM JSON document."""
        return {doc.name: doc.to_iam() for doc in (self.job, self.head, self.pass_role)}


# ---------------------------------------------------------------------------
# Statement builders
# ---------------------------------------------------------------------------


def _log_group_arn(derived: DerivedNames) -> str:
    return (
        f"arn:{derived.partition}:logs:{derived.region}:*:"
        f"log-group:{BATCH_JOB_LOG_GROUP}:*"
    )


def _job_statements(derived: DerivedNames) -> List[PolicyStatement]:
    buckets = list(derived.bucket_arns)
    return [
        PolicyStatement(
            sid="BucketListing",
            actions=["s3:ListBucket", "s3:GetBucketLocation"],
            resources=buckets,
        ),
        PolicyStatement(
            sid="ObjectReadWrite",
            actions=[
                "s3:GetObject",
                "s3:PutObject",
                "s3:DeleteObject",
                "s3:PutObjectTagging",
                "s3:AbortMultipartUpload",
                "s3:ListMultipartUploadParts",
            ],
            resources=[f"{arn}/*" for arn in buckets],
        ),
        PolicyStatement(
            sid="JobLogStreams",
            actions=["logs:CreateLogStream", "logs:PutLogEvents"],
            resources=[_log_group_arn(derived)],
        ),
    ]


def _head_statements(derived: DerivedNames) -> List[PolicyStatement]:
    region, partition = derived.region, derived.partition
    return [
        PolicyStatement(
            sid="BatchWorkflowControl",
            actions=[
                "batch:SubmitJob",
                "batch:CancelJob",
                "batch:TerminateJob",
                "batch:TagResource",
                "batch:DescribeJobs",
                "batch:ListJobs",
                "batch:DescribeJobQueues",
                "batch:DescribeComputeEnvironments",
                "batch:RegisterJobDefinition",
                "batch:DeregisterJobDefinition",
                "batch:DescribeJobDefinitions",
            ],
            resources=["*"],
        ),
        PolicyStatement(
            sid="TaskIntrospection",
            actions=[
                "ecs:DescribeTasks",
                "ecs:DescribeContainerInstances",
                "ec2:DescribeInstances",
                "ec2:DescribeInstanceTypes",
                "ec2:DescribeInstanceAttribute",
                "ec2:DescribeInstanceStatus",
            ],
            resources=["*"],
        ),
        PolicyStatement(
            sid="JobLogRetrieval",
            actions=["logs:GetLogEvents", "logs:DescribeLogStreams"],
            resources=[_log_group_arn(derived)],
        ),
        PolicyStatement(
            sid="PlatformSecretsRead",
            actions=["secretsmanager:GetSecretValue", "secretsmanager:DescribeSecret"],
            resources=[
                f"arn:{partition}:secretsmanager:{region}:*:"
                f"secret:{PLATFORM_SECRET_PREFIX}*"
            ],
        ),
        PolicyStatement(
            sid="PlatformSecretsDecrypt",
            actions=["kms:Decrypt"],
            resources=["*"],
            condition={
                "StringEquals": {
                    "kms:ViaService": f"secretsmanager.{region}.amazonaws.com"
                }
            },
        ),
        PolicyStatement(
            sid="DelegateTaskRoles",
            actions=["iam:PassRole"],
            resources=delegatable_role_arns(derived, head_only=True),
            condition={"StringEquals": {"iam:PassedToService": ECS_TASKS_SERVICE}},
        ),
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_job_policy(derived: DerivedNames) -> PolicyDocument:
    return PolicyDocument(name=derived.job_policy_name, statements=_job_statements(derived))


def build_head_policy(derived: DerivedNames) -> PolicyDocument:
    """Job statements followed by the head-only statements."""
    return PolicyDocument(
        name=derived.head_policy_name,
        statements=_job_statements(derived) + _head_statements(derived),
    )


def build_pass_role_policy(derived: DerivedNames) -> PolicyDocument:
    return PolicyDocument(
        name=derived.pass_role_policy_name,
        statements=[
            PolicyStatement(
                sid="DelegateEnvironmentRoles",
                actions=["iam:PassRole"],
                resources=delegatable_role_arns(derived),
            )
        ],
    )


def build_policies(cfg: InputConfig, derived: DerivedNames) -> PolicySet:
    """Build the job, head and pass-role documents.

    *cfg* is accepted for symmetry with the other compiler stages; every
    value the documents need is already in *derived*.
    """
    policies = PolicySet(
        job=build_job_policy(derived),
        head=build_head_policy(derived),
        pass_role=build_pass_role_policy(derived),
    )
    logger.debug(
        "Built policies for %s (%d bucket ARN(s))",
        cfg.name_prefix,
        len(derived.bucket_arns),
    )
    return policies
