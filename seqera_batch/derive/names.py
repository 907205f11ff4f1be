"""Naming and derivation engine.

Pure functions that turn a validated :class:`InputConfig` into every name,
ARN, URI and feature-flag branch the rest of the compiler needs.  Nothing
here performs I/O and every function returns the same value for the same
input.

Allocation strategy selection for the compute environment::

    use_spot_instances  allocation_strategy               effective
    ------------------  --------------------------------  -----------------------------
    False               any                               passed through verbatim
    True                SPOT_CAPACITY_OPTIMIZED           SPOT_CAPACITY_OPTIMIZED
    True                SPOT_PRICE_CAPACITY_OPTIMIZED     SPOT_PRICE_CAPACITY_OPTIMIZED
    True                BEST_FIT / BEST_FIT_PROGRESSIVE   SPOT_CAPACITY_OPTIMIZED

The On-Demand row intentionally passes SPOT_* strings through unchanged;
AWS Batch accepts them there and the input document is the place to fix it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from seqera_batch.config.models import SPOT_STRATEGIES, AllocationStrategy, InputConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Rendered in place of the account id when none was supplied.
ACCOUNT_PLACEHOLDER = "${aws_account_id}"

MANAGED_BY_TAG_VALUE = "terraform"
MODULE_TAG_VALUE = "seqera-batch-env"
RESERVED_TAG_KEYS = ("ManagedBy", "Module", "Name")

HEAD_ALLOCATION_STRATEGY = AllocationStrategy.BEST_FIT_PROGRESSIVE

RESOURCE_TYPE_ON_DEMAND = "EC2"
RESOURCE_TYPE_SPOT = "SPOT"


class DerivationError(RuntimeError):
    """An internal invariant was broken after validation passed.

    Signals a programming defect (e.g. an unknown allocation strategy
    reaching the derivation step), not a user-correctable condition.
    """


# ---------------------------------------------------------------------------
# DerivedNames
# ---------------------------------------------------------------------------


class DerivedNames(BaseModel):
    """Every value computed from an :class:`InputConfig`.

    Read-only once built.  Serialise with ``model_dump(mode="json")``.
    """

    model_config = ConfigDict(frozen=True)

    name_prefix: str
    region: str
    partition: str
    account: str

    # -- batch ---------------------------------------------------------------
    head_compute_env_name: str
    compute_compute_env_name: str
    head_queue_name: str
    compute_queue_name: str
    head_allocation_strategy: AllocationStrategy
    compute_allocation_strategy: AllocationStrategy
    compute_resource_type: str
    instance_types: List[str]
    launch_template_name: str

    # -- storage -------------------------------------------------------------
    work_dir_uri: str
    work_bucket_arn: str
    bucket_arns: List[str]

    # -- iam -----------------------------------------------------------------
    head_role_name: str
    compute_instance_role_name: str
    job_role_name: str
    execution_role_name: str
    batch_service_role_name: str
    spot_fleet_role_name: Optional[str] = None
    instance_profile_name: str
    platform_user_name: str
    job_policy_name: str
    head_policy_name: str
    pass_role_policy_name: str

    # -- platform ------------------------------------------------------------
    platform_credentials_name: str
    platform_env_name: str
    platform_env_description: Optional[str] = None

    tags: Dict[str, str]

    def role_arn(self, role_name: str) -> str:
        """Return the IAM role ARN for *role_name* in this account."""
        return f"arn:{self.partition}:iam::{self.account}:role/{role_name}"

    @property
    def head_role_arn(self) -> str:
        return self.role_arn(self.head_role_name)

    @property
    def job_role_arn(self) -> str:
        return self.role_arn(self.job_role_name)

    @property
    def execution_role_arn(self) -> str:
        return self.role_arn(self.execution_role_name)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def prefixed(prefix: str, suffix: str) -> str:
    """``{prefix}-{suffix}``."""
    return f"{prefix}-{suffix}"


def aws_partition(region: str) -> str:
    """Return the ARN partition for *region*."""
    if region.startswith("cn-"):
        return "aws-cn"
    if region.startswith("us-gov-"):
        return "aws-us-gov"
    return "aws"


def bucket_arn(bucket_name: str, partition: str = "aws") -> str:
    """``arn:{partition}:s3:::{bucket_name}``."""
    return f"arn:{partition}:s3:::{bucket_name}"


def work_dir_uri(bucket_name: str, path: str) -> str:
    """Join bucket and path into an ``s3://`` URI.

    Leading, trailing and repeated slashes in *path* are dropped;
    an empty path yields the bucket root.
    """
    parts = [p for p in path.split("/") if p]
    if not parts:
        return f"s3://{bucket_name}"
    return f"s3://{bucket_name}/{'/'.join(parts)}"


def combined_bucket_arns(work_bucket: str, additional: Sequence[str]) -> List[str]:
    """Work bucket ARN first, then *additional* in input order."""
    return [work_bucket, *additional]


def first_non_empty(*candidates: Optional[str]) -> str:
    """Return the first truthy candidate, or an empty string."""
    for candidate in candidates:
        if candidate:
            return candidate
    return ""


def effective_allocation_strategy(
    use_spot_instances: bool,
    allocation_strategy: str,
) -> AllocationStrategy:
    """Resolve the strategy handed to the compute environment.

    Raises:
        DerivationError: If *allocation_strategy* is not a known strategy.
    """
    try:
        requested = AllocationStrategy(allocation_strategy)
    except ValueError as exc:
        raise DerivationError(
            f"Unknown allocation strategy reached derivation: {allocation_strategy!r}"
        ) from exc

    if not use_spot_instances:
        return requested
    if requested in SPOT_STRATEGIES:
        return requested
    logger.debug(
        "Spot enabled with %s; using %s",
        requested.value,
        AllocationStrategy.SPOT_CAPACITY_OPTIMIZED.value,
    )
    return AllocationStrategy.SPOT_CAPACITY_OPTIMIZED


def merge_tags(user_tags: Mapping[str, str], name_prefix: str) -> Dict[str, str]:
    """Overlay the reserved tags on *user_tags*; reserved keys always win."""
    merged: Dict[str, str] = dict(user_tags)
    merged["ManagedBy"] = MANAGED_BY_TAG_VALUE
    merged["Module"] = MODULE_TAG_VALUE
    merged["Name"] = name_prefix
    return dict(sorted(merged.items()))


# ---------------------------------------------------------------------------
# derive
# ---------------------------------------------------------------------------


def derive(cfg: InputConfig) -> DerivedNames:
    """Compute :class:`DerivedNames` for an already validated *cfg*."""
    p = cfg.name_prefix
    partition = aws_partition(cfg.region)
    work_arn = bucket_arn(cfg.work_bucket_name, partition)

    return DerivedNames(
        name_prefix=p,
        region=cfg.region,
        partition=partition,
        account=cfg.account_id or ACCOUNT_PLACEHOLDER,
        head_compute_env_name=prefixed(p, "head-ce"),
        compute_compute_env_name=prefixed(p, "compute-ce"),
        head_queue_name=prefixed(p, "head-queue"),
        compute_queue_name=prefixed(p, "compute-queue"),
        head_allocation_strategy=HEAD_ALLOCATION_STRATEGY,
        compute_allocation_strategy=effective_allocation_strategy(
            cfg.use_spot_instances, cfg.allocation_strategy
        ),
        compute_resource_type=(
            RESOURCE_TYPE_SPOT if cfg.use_spot_instances else RESOURCE_TYPE_ON_DEMAND
        ),
        instance_types=sorted(set(cfg.instance_types)),
        launch_template_name=prefixed(p, "launch-template"),
        work_dir_uri=work_dir_uri(cfg.work_bucket_name, cfg.work_dir_path),
        work_bucket_arn=work_arn,
        bucket_arns=combined_bucket_arns(work_arn, cfg.additional_bucket_arns),
        head_role_name=prefixed(p, "head-role"),
        compute_instance_role_name=prefixed(p, "compute-instance-role"),
        job_role_name=prefixed(p, "job-role"),
        execution_role_name=prefixed(p, "execution-role"),
        batch_service_role_name=prefixed(p, "batch-service-role"),
        spot_fleet_role_name=(
            prefixed(p, "spot-fleet-role") if cfg.use_spot_instances else None
        ),
        instance_profile_name=prefixed(p, "compute-instance-profile"),
        platform_user_name=prefixed(p, "platform-user"),
        job_policy_name=prefixed(p, "job-policy"),
        head_policy_name=prefixed(p, "head-policy"),
        pass_role_policy_name=prefixed(p, "pass-role-policy"),
        platform_credentials_name=first_non_empty(
            cfg.platform_credentials_name, prefixed(p, "aws-credentials")
        ),
        platform_env_name=first_non_empty(cfg.platform_env_name, p),
        platform_env_description=cfg.platform_env_description,
        tags=merge_tags(cfg.tags, p),
    )
