"""Seqera Platform request bodies.

Two calls register the environment with the platform:

1. ``POST /credentials?workspaceId=<id>`` — stores the AWS access key pair
   and returns a credentials id.
2. ``POST /compute-envs?workspaceId=<id>`` — registers an ``aws-batch``
   compute environment that points at the pre-built head and compute
   queues.

The compute environment config carries no ``forge`` block:
without it the platform uses the queues it is given instead of building
its own.

These helpers only build requests.  The resource plan carries both as
``seqera_credentials`` and ``seqera_compute_env`` entries; sending them
(and authenticating with ``platform_access_token``) is the provisioning
layer's job.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from seqera_batch.bootstrap.userdata import AWS_CLI_PATH
from seqera_batch.config.models import InputConfig
from seqera_batch.derive.names import DerivedNames

PLATFORM_TYPE = "aws-batch"
CREDENTIALS_PROVIDER = "aws"


class PlatformRequest(BaseModel):
    """An HTTP request against the Seqera Platform API."""

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    params: Dict[str, Any] = Field(default_factory=dict)
    body: Dict[str, Any] = Field(default_factory=dict)


def endpoint(server_url: str, path: str) -> str:
    """Join the API base URL and *path* with exactly one slash."""
    return f"{server_url.rstrip('/')}/{path.lstrip('/')}"


def credentials_body(
    derived: DerivedNames,
    access_key_id: str,
    secret_access_key: str,
) -> Dict[str, Any]:
    return {
        "credentials": {
            "name": derived.platform_credentials_name,
            "provider": CREDENTIALS_PROVIDER,
            "keys": {
                "accessKey": access_key_id,
                "secretKey": secret_access_key,
            },
        }
    }


def compute_env_config(cfg: InputConfig, derived: DerivedNames) -> Dict[str, Any]:
    """The ``computeEnv.config`` object for a manually provisioned Batch setup.

    Optional tuning values are only present when set in *cfg*.
    """
    config: Dict[str, Any] = {
        "region": cfg.region,
        "workDir": derived.work_dir_uri,
        "headQueue": derived.head_queue_name,
        "computeQueue": derived.compute_queue_name,
        "headJobRole": derived.head_role_arn,
        "computeJobRole": derived.job_role_arn,
        "executionRole": derived.execution_role_arn,
        "waveEnabled": cfg.enable_wave,
        "fusion2Enabled": cfg.enable_fusion,
    }
    if not cfg.enable_fusion:
        config["cliPath"] = AWS_CLI_PATH

    optional = {
        "headJobCpus": cfg.head_job_cpus,
        "headJobMemoryMb": cfg.head_job_memory_mb,
        "preRunScript": cfg.pre_run_script,
        "postRunScript": cfg.post_run_script,
        "nextflowConfig": cfg.extra_config,
    }
    for key, value in optional.items():
        if value is not None:
            config[key] = value
    return config


def compute_env_body(
    cfg: InputConfig,
    derived: DerivedNames,
    credentials_id: str,
) -> Dict[str, Any]:
    env: Dict[str, Any] = {
        "name": derived.platform_env_name,
        "platform": PLATFORM_TYPE,
        "credentialsId": credentials_id,
        "config": compute_env_config(cfg, derived),
    }
    if derived.platform_env_description:
        env["description"] = derived.platform_env_description
    return {"computeEnv": env}


def credentials_request(
    cfg: InputConfig,
    derived: DerivedNames,
    access_key_id: str,
    secret_access_key: str,
) -> PlatformRequest:
    return PlatformRequest(
        method="POST",
        url=endpoint(cfg.platform_server_url, "credentials"),
        params={"workspaceId": cfg.platform_workspace_id},
        body=credentials_body(derived, access_key_id, secret_access_key),
    )


def compute_env_request(
    cfg: InputConfig,
    derived: DerivedNames,
    credentials_id: str,
) -> PlatformRequest:
    return PlatformRequest(
        method="POST",
        url=endpoint(cfg.platform_server_url, "compute-envs"),
        params={"workspaceId": cfg.platform_workspace_id},
        body=compute_env_body(cfg, derived, credentials_id),
    )
