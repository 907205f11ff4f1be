"""IAM policy documents, trust relationships and role layout."""

from seqera_batch.iam.policies import (
    DELEGATABLE_IDENTITIES,
    POLICY_VERSION,
    DelegatableIdentity,
    Effect,
    PolicyDocument,
    PolicySet,
    PolicyStatement,
    build_head_policy,
    build_job_policy,
    build_pass_role_policy,
    build_policies,
    delegatable_role_arns,
)
from seqera_batch.iam.trust import (
    RoleSet,
    RoleSpec,
    assume_role_document,
    build_roles,
    managed_policy_arn,
)

__all__ = [
    "DELEGATABLE_IDENTITIES",
    "DelegatableIdentity",
    "Effect",
    "POLICY_VERSION",
    "PolicyDocument",
    "PolicySet",
    "PolicyStatement",
    "RoleSet",
    "RoleSpec",
    "assume_role_document",
    "build_head_policy",
    "build_job_policy",
    "build_pass_role_policy",
    "build_policies",
    "build_roles",
    "delegatable_role_arns",
    "managed_policy_arn",
]
