"""Per-field and cross-field validation of :class:`InputConfig`.

Every rule is evaluated independently, so a single call reports all the
problems in a document.  Nothing here mutates the input.

Rules:

- ``name_prefix`` fully matches ``[a-z0-9-]+`` and is at most 32 characters
- ``work_bucket_name`` is non-empty and carries no ``s3://`` scheme
- ``subnet_ids`` / ``security_group_ids`` are non-empty
- ``spot_bid_percentage`` lies in ``[1, 100]``
- ``allocation_strategy`` is one of :class:`AllocationStrategy`
- vCPU bounds are non-negative and ``min <= max`` for head and compute
- ``instance_types`` is non-empty
- ``head_job_cpus`` / ``head_job_memory_mb`` are positive when set
- ``account_id`` is a 12-digit string when set
- ``enable_fusion`` requires ``enable_wave``
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List

from pydantic import BaseModel, Field

from seqera_batch.config.models import AllocationStrategy, InputConfig

logger = logging.getLogger(__name__)

NAME_PREFIX_PATTERN = re.compile(r"[a-z0-9-]+")
NAME_PREFIX_MAX_LENGTH = 32
ACCOUNT_ID_PATTERN = re.compile(r"[0-9]{12}")
BUCKET_URI_SCHEMES = ("s3://", "s3a://", "s3n://")


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class ValidationIssue(BaseModel):
    """One violated rule.

    Attributes:
        field: Input field the rule is attached to (first field for
            cross-field rules).
        reason: Human-readable explanation of what to fix.
    """

    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class ValidationReport(BaseModel):
    """All issues found for one input document."""

    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when no rule was violated."""
        return not self.issues

    def field_names(self) -> List[str]:
        """Return the distinct field names that have issues, in report order."""
        seen: List[str] = []
        for issue in self.issues:
            if issue.field not in seen:
                seen.append(issue.field)
        return seen


class ConfigValidationError(ValueError):
    """Raised when an input document violates one or more rules."""

    def __init__(self, issues: List[ValidationIssue]) -> None:
        self.issues = list(issues)
        lines = "; ".join(str(i) for i in self.issues)
        super().__init__(f"{len(self.issues)} validation issue(s): {lines}")


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------

Rule = Callable[[InputConfig], List[ValidationIssue]]


def _check_name_prefix(cfg: InputConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not NAME_PREFIX_PATTERN.fullmatch(cfg.name_prefix):
        issues.append(
            ValidationIssue(
                field="name_prefix",
                reason=(
                    f"'{cfg.name_prefix}' must contain only lowercase letters, "
                    "digits and hyphens"
                ),
            )
        )
    if len(cfg.name_prefix) > NAME_PREFIX_MAX_LENGTH:
        issues.append(
            ValidationIssue(
                field="name_prefix",
                reason=(
                    f"must be at most {NAME_PREFIX_MAX_LENGTH} characters "
                    f"(got {len(cfg.name_prefix)})"
                ),
            )
        )
    return issues


def _check_work_bucket(cfg: InputConfig) -> List[ValidationIssue]:
    name = cfg.work_bucket_name
    if not name:
        return [ValidationIssue(field="work_bucket_name", reason="must not be empty")]
    if name.lower().startswith(BUCKET_URI_SCHEMES):
        return [
            ValidationIssue(
                field="work_bucket_name",
                reason=f"'{name}' must be a bare bucket name without the s3:// prefix",
            )
        ]
    return []


def _check_network(cfg: InputConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not cfg.subnet_ids:
        issues.append(
            ValidationIssue(field="subnet_ids", reason="at least one subnet is required")
        )
    if not cfg.security_group_ids:
        issues.append(
            ValidationIssue(
                field="security_group_ids",
                reason="at least one security group is required",
            )
        )
    return issues


def _check_spot_bid(cfg: InputConfig) -> List[ValidationIssue]:
    if not 1 <= cfg.spot_bid_percentage <= 100:
        return [
            ValidationIssue(
                field="spot_bid_percentage",
                reason=f"must be between 1 and 100 (got {cfg.spot_bid_percentage})",
            )
        ]
    return []


def _check_allocation_strategy(cfg: InputConfig) -> List[ValidationIssue]:
    allowed = [s.value for s in AllocationStrategy]
    if cfg.allocation_strategy not in allowed:
        return [
            ValidationIssue(
                field="allocation_strategy",
                reason=(
                    f"'{cfg.allocation_strategy}' is not one of: "
                    f"{', '.join(allowed)}"
                ),
            )
        ]
    return []


def _check_vcpus(cfg: InputConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for label in ("head", "compute"):
        lo_field, hi_field = f"{label}_min_vcpus", f"{label}_max_vcpus"
        lo, hi = getattr(cfg, lo_field), getattr(cfg, hi_field)
        for fname, value in ((lo_field, lo), (hi_field, hi)):
            if value < 0:
                issues.append(
                    ValidationIssue(field=fname, reason=f"must be >= 0 (got {value})")
                )
        if lo > hi:
            issues.append(
                ValidationIssue(
                    field=lo_field,
                    reason=f"{lo_field} ({lo}) must not exceed {hi_field} ({hi})",
                )
            )
    return issues


def _check_instance_types(cfg: InputConfig) -> List[ValidationIssue]:
    if not cfg.instance_types:
        return [
            ValidationIssue(
                field="instance_types", reason="at least one instance type is required"
            )
        ]
    return []


def _check_head_job_resources(cfg: InputConfig) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for fname in ("head_job_cpus", "head_job_memory_mb"):
        value = getattr(cfg, fname)
        if value is not None and value <= 0:
            issues.append(
                ValidationIssue(field=fname, reason=f"must be positive when set (got {value})")
            )
    return issues


def _check_account_id(cfg: InputConfig) -> List[ValidationIssue]:
    if cfg.account_id is not None and not ACCOUNT_ID_PATTERN.fullmatch(cfg.account_id):
        return [
            ValidationIssue(
                field="account_id",
                reason=f"'{cfg.account_id}' must be a 12-digit AWS account id",
            )
        ]
    return []


def _check_fusion_requires_wave(cfg: InputConfig) -> List[ValidationIssue]:
    if cfg.enable_fusion and not cfg.enable_wave:
        return [
            ValidationIssue(
                field="enable_fusion",
                reason="Fusion requires Wave: set enable_wave to true",
            )
        ]
    return []


#: Every rule runs on every call; order only affects report ordering.
RULES: List[Rule] = [
    _check_name_prefix,
    _check_work_bucket,
    _check_network,
    _check_spot_bid,
    _check_allocation_strategy,
    _check_vcpus,
    _check_instance_types,
    _check_head_job_resources,
    _check_account_id,
    _check_fusion_requires_wave,
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_config(cfg: InputConfig) -> ValidationReport:
    """Evaluate every rule against *cfg* and collect all issues."""
    report = ValidationReport()
    for rule in RULES:
        report.issues.extend(rule(cfg))
    if report.issues:
        logger.debug("Validation found %d issue(s)", len(report.issues))
    return report


def ensure_valid(cfg: InputConfig) -> None:
    """Raise :class:`ConfigValidationError` unless *cfg* passes every rule."""
    report = validate_config(cfg)
    if not report.passed:
        raise ConfigValidationError(report.issues)
