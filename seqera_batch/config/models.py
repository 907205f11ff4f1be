"""Pydantic models for the compiler input document.

Defines:
- :class:`AllocationStrategy` — the four AWS Batch allocation strategies
- :class:`InputConfig` — the immutable input document

Only *types* are enforced here.  Range, charset and cross-field rules live
in :mod:`seqera_batch.config.validation` so that every violation can be
reported in a single pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class AllocationStrategy(str, Enum):
    """AWS Batch compute-resource allocation strategies."""

    BEST_FIT = "BEST_FIT"
    BEST_FIT_PROGRESSIVE = "BEST_FIT_PROGRESSIVE"
    SPOT_CAPACITY_OPTIMIZED = "SPOT_CAPACITY_OPTIMIZED"
    SPOT_PRICE_CAPACITY_OPTIMIZED = "SPOT_PRICE_CAPACITY_OPTIMIZED"


#: Strategies that only make sense for a Spot compute resource.
SPOT_STRATEGIES = frozenset(
    {
        AllocationStrategy.SPOT_CAPACITY_OPTIMIZED,
        AllocationStrategy.SPOT_PRICE_CAPACITY_OPTIMIZED,
    }
)

DEFAULT_INSTANCE_TYPES: List[str] = ["c6id", "m6id", "r6id"]
DEFAULT_PLATFORM_SERVER_URL = "https://api.cloud.seqera.io"


class InputConfig(BaseModel):
    """Compiler input, supplied once per compilation.

    Field groups mirror the YAML document::

        name_prefix: genomics-dev
        region: eu-west-1
        subnet_ids: [subnet-aaa, subnet-bbb]
        security_group_ids: [sg-123]
        work_bucket_name: my-nextflow-bucket
        platform_workspace_id: 123456789
        use_spot_instances: true
        enable_wave: true
        enable_fusion: true

    The model is frozen: derived values are computed from it, never
    written back into it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # -- identity ------------------------------------------------------------
    name_prefix: str
    region: str
    profile: Optional[str] = None
    account_id: Optional[str] = None

    # -- network -------------------------------------------------------------
    subnet_ids: List[str] = Field(default_factory=list)
    security_group_ids: List[str] = Field(default_factory=list)

    # -- storage -------------------------------------------------------------
    work_bucket_name: str
    work_dir_path: str = "work"
    additional_bucket_arns: List[str] = Field(default_factory=list)

    # -- compute shape -------------------------------------------------------
    head_min_vcpus: int = 0
    head_max_vcpus: int = 128
    compute_min_vcpus: int = 0
    compute_max_vcpus: int = 256
    instance_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_INSTANCE_TYPES)
    )
    ami_id: Optional[str] = None
    ec2_key_pair: Optional[str] = None

    # -- spot policy ---------------------------------------------------------
    use_spot_instances: bool = False
    spot_bid_percentage: int = 100
    allocation_strategy: str = AllocationStrategy.BEST_FIT_PROGRESSIVE.value

    # -- platform integration ------------------------------------------------
    platform_server_url: str = DEFAULT_PLATFORM_SERVER_URL
    platform_access_token: SecretStr = SecretStr("")
    platform_workspace_id: int
    platform_credentials_name: Optional[str] = None
    platform_env_name: Optional[str] = None
    platform_env_description: Optional[str] = None

    # -- job tuning ----------------------------------------------------------
    head_job_cpus: Optional[int] = None
    head_job_memory_mb: Optional[int] = None
    enable_wave: bool = False
    enable_fusion: bool = False
    pre_run_script: Optional[str] = None
    post_run_script: Optional[str] = None
    extra_config: Optional[str] = None

    # -- metadata ------------------------------------------------------------
    tags: Dict[str, str] = Field(default_factory=dict)
