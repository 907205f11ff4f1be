"""Dependency-ordered resource plan.

Creation order::

    1. IAM policies (job, head, pass-role)
    2. IAM roles, then the compute instance profile
    3. Platform IAM user and its access key
    4. Launch template (user-data, optional AMI and key pair)
    5. Batch compute environments (head: On-Demand, compute: On-Demand or Spot)
    6. Batch job queues, one per compute environment
    7. Seqera credentials, then the Seqera compute environment

Each resource lists the :class:`ResourceRef` objects it was built from;
:meth:`ResourcePlan.add` turns those into ``depends_on`` and checks that
every one points backwards in this list.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Tuple

from seqera_batch.bootstrap.userdata import BootstrapPayload
from seqera_batch.config.models import InputConfig
from seqera_batch.derive.names import RESOURCE_TYPE_ON_DEMAND, RESOURCE_TYPE_SPOT, DerivedNames
from seqera_batch.iam.policies import PolicySet
from seqera_batch.iam.trust import RoleSet
from seqera_batch.plan.models import ResourcePlan, ResourceRef
from seqera_batch.plan.platform import compute_env_request, credentials_request

logger = logging.getLogger(__name__)

JOB_QUEUE_PRIORITY = 1


def _ref(kind: str, name: str, attribute: str = "arn") -> ResourceRef:
    return ResourceRef(kind=kind, name=name, attribute=attribute)


def _compute_resources(
    cfg: InputConfig,
    derived: DerivedNames,
    *,
    resource_type: str,
    allocation_strategy: str,
    min_vcpus: int,
    max_vcpus: int,
) -> Tuple[Dict[str, Any], List[ResourceRef]]:
    profile = _ref("iam_instance_profile", derived.instance_profile_name)
    template = _ref("launch_template", derived.launch_template_name, "id")
    refs = [profile, template]
    resources: Dict[str, Any] = {
        "type": resource_type,
        "allocation_strategy": allocation_strategy,
        "min_vcpus": min_vcpus,
        "max_vcpus": max_vcpus,
        "instance_types": list(derived.instance_types),
        "subnets": list(cfg.subnet_ids),
        "security_group_ids": list(cfg.security_group_ids),
        "instance_role": profile.token(),
        "launch_template": {
            "launch_template_id": template.token(),
            "version": "$Latest",
        },
        "tags": dict(derived.tags),
    }
    if resource_type == RESOURCE_TYPE_SPOT:
        resources["bid_percentage"] = cfg.spot_bid_percentage
        if derived.spot_fleet_role_name:
            fleet_role = _ref("iam_role", derived.spot_fleet_role_name)
            resources["spot_iam_fleet_role"] = fleet_role.token()
            refs.append(fleet_role)
    return resources, refs


def build_resource_plan(
    cfg: InputConfig,
    derived: DerivedNames,
    policies: PolicySet,
    roles: RoleSet,
    bootstrap: BootstrapPayload,
) -> ResourcePlan:
    """Assemble every resource of the environment in creation order."""
    plan = ResourcePlan()
    tags = dict(derived.tags)

    # 1. policies
    for doc in (policies.job, policies.head, policies.pass_role):
        plan.add("iam_policy", doc.name, {"document": doc.to_iam(), "tags": tags})

    # 2. roles + instance profile
    for role in roles.all():
        attached = [_ref("iam_policy", n) for n in role.policy_names]
        plan.add(
            "iam_role",
            role.name,
            {
                "assume_role_policy": role.trust_document(),
                "policy_arns": [r.token() for r in attached],
                "managed_policy_arns": list(role.managed_policy_arns),
                "tags": tags,
            },
            refs=attached,
        )
    instance_role = _ref("iam_role", roles.compute_instance.name, "name")
    plan.add(
        "iam_instance_profile",
        derived.instance_profile_name,
        {"role": instance_role.token(), "tags": tags},
        refs=[instance_role],
    )

    # 3. platform user
    user_policies = [
        _ref("iam_policy", policies.head.name),
        _ref("iam_policy", policies.pass_role.name),
    ]
    plan.add(
        "iam_user",
        derived.platform_user_name,
        {"policy_arns": [r.token() for r in user_policies], "tags": tags},
        refs=user_policies,
    )
    user = _ref("iam_user", derived.platform_user_name, "name")
    plan.add("iam_access_key", derived.platform_user_name, {"user": user.token()}, refs=[user])

    # 4. launch template
    launch_template: Dict[str, Any] = {
        "user_data_base64": base64.b64encode(bootstrap.content.encode("utf-8")).decode("ascii"),
        "bootstrap_variant": bootstrap.variant.value,
        "tags": tags,
    }
    if cfg.ami_id:
        launch_template["image_id"] = cfg.ami_id
    if cfg.ec2_key_pair:
        launch_template["key_name"] = cfg.ec2_key_pair
    plan.add("launch_template", derived.launch_template_name, launch_template)

    # 5. compute environments
    service_role = _ref("iam_role", roles.batch_service.name)
    for env_name, resource_type, strategy, min_vcpus, max_vcpus in (
        (
            derived.head_compute_env_name,
            RESOURCE_TYPE_ON_DEMAND,
            derived.head_allocation_strategy.value,
            cfg.head_min_vcpus,
            cfg.head_max_vcpus,
        ),
        (
            derived.compute_compute_env_name,
            derived.compute_resource_type,
            derived.compute_allocation_strategy.value,
            cfg.compute_min_vcpus,
            cfg.compute_max_vcpus,
        ),
    ):
        resources, refs = _compute_resources(
            cfg,
            derived,
            resource_type=resource_type,
            allocation_strategy=strategy,
            min_vcpus=min_vcpus,
            max_vcpus=max_vcpus,
        )
        plan.add(
            "batch_compute_environment",
            env_name,
            {
                "type": "MANAGED",
                "service_role": service_role.token(),
                "compute_resources": resources,
                "tags": tags,
            },
            refs=[service_role, *refs],
        )

    # 6. job queues
    queues: List[ResourceRef] = []
    for queue_name, env_name in (
        (derived.head_queue_name, derived.head_compute_env_name),
        (derived.compute_queue_name, derived.compute_compute_env_name),
    ):
        env = _ref("batch_compute_environment", env_name)
        plan.add(
            "batch_job_queue",
            queue_name,
            {
                "state": "ENABLED",
                "priority": JOB_QUEUE_PRIORITY,
                "compute_environments": [env.token()],
                "tags": tags,
            },
            refs=[env],
        )
        queues.append(_ref("batch_job_queue", queue_name, "name"))

    # 7. platform registration
    access_key_id = _ref("iam_access_key", derived.platform_user_name, "id")
    access_key_secret = _ref("iam_access_key", derived.platform_user_name, "secret")
    plan.add(
        "seqera_credentials",
        derived.platform_credentials_name,
        credentials_request(
            cfg, derived, access_key_id.token(), access_key_secret.token()
        ).model_dump(mode="json"),
        refs=[access_key_id, access_key_secret],
    )
    credentials = _ref("seqera_credentials", derived.platform_credentials_name, "id")
    # queue names and role ARNs are embedded by value
    delegated_roles = [
        _ref("iam_role", name)
        for name in (derived.head_role_name, derived.job_role_name, derived.execution_role_name)
    ]
    plan.add(
        "seqera_compute_env",
        derived.platform_env_name,
        compute_env_request(cfg, derived, credentials.token()).model_dump(mode="json"),
        refs=[credentials, *queues, *delegated_roles],
    )

    logger.debug("Resource plan for %s has %d resources", cfg.name_prefix, len(plan.resources))
    return plan
