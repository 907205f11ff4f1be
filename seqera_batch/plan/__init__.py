"""Resource plan, platform registration requests, and compiled output."""

from seqera_batch.plan.builder import JOB_QUEUE_PRIORITY, build_resource_plan
from seqera_batch.plan.models import (
    CompiledEnvironment,
    ResourcePlan,
    ResourceRef,
    ResourceSpec,
)
from seqera_batch.plan.platform import (
    PlatformRequest,
    compute_env_body,
    compute_env_config,
    compute_env_request,
    credentials_body,
    credentials_request,
    endpoint,
)

__all__ = [
    "CompiledEnvironment",
    "JOB_QUEUE_PRIORITY",
    "PlatformRequest",
    "ResourcePlan",
    "ResourceRef",
    "ResourceSpec",
    "build_resource_plan",
    "compute_env_body",
    "compute_env_config",
    "compute_env_request",
    "credentials_body",
    "credentials_request",
    "endpoint",
]
