"""Compile an :class:`InputConfig` into a :class:`CompiledEnvironment`.

Stages, in order::

    validate  →  derive  →  build policies + roles  →  select user-data  →  plan

Validation is fail-fast: if any rule is violated nothing else runs and
:class:`ConfigValidationError` carries every issue.  The remaining stages
are pure, so compiling the same input twice yields byte-identical
:meth:`CompiledEnvironment.to_sorted_json` output.
"""

from __future__ import annotations

import logging

from seqera_batch.bootstrap.userdata import select_bootstrap
from seqera_batch.config.models import InputConfig
from seqera_batch.config.validation import ensure_valid
from seqera_batch.derive.names import derive
from seqera_batch.iam.policies import build_policies
from seqera_batch.iam.trust import build_roles
from seqera_batch.plan.builder import build_resource_plan
from seqera_batch.plan.models import CompiledEnvironment

logger = logging.getLogger(__name__)


def compile_environment(cfg: InputConfig) -> CompiledEnvironment:
    """Validate *cfg* and build the complete compiled output.

    Raises:
        ConfigValidationError: If *cfg* violates any validation rule.
        DerivationError: If an internal invariant breaks after validation.
    """
    ensure_valid(cfg)

    derived = derive(cfg)
    policies = build_policies(cfg, derived)
    roles = build_roles(derived, policies)
    bootstrap = select_bootstrap(cfg)
    plan = build_resource_plan(cfg, derived, policies, roles, bootstrap)

    logger.info(
        "Compiled %s: %d resources, %s user-data",
        cfg.name_prefix,
        len(plan.resources),
        bootstrap.variant.value,
    )
    return CompiledEnvironment(
        derived=derived,
        policies=policies,
        roles=roles,
        bootstrap=bootstrap,
        plan=plan,
    )
