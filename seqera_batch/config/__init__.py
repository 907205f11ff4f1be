"""Input model, loading, and validation."""

from seqera_batch.config.loader import (
    ACCESS_TOKEN_ENV_VARS,
    load_config,
    parse_config,
    resolve_access_token,
)
from seqera_batch.config.models import (
    DEFAULT_INSTANCE_TYPES,
    SPOT_STRATEGIES,
    AllocationStrategy,
    InputConfig,
)
from seqera_batch.config.validation import (
    ConfigValidationError,
    ValidationIssue,
    ValidationReport,
    ensure_valid,
    validate_config,
)

__all__ = [
    "ACCESS_TOKEN_ENV_VARS",
    "AllocationStrategy",
    "ConfigValidationError",
    "DEFAULT_INSTANCE_TYPES",
    "InputConfig",
    "SPOT_STRATEGIES",
    "ValidationIssue",
    "ValidationReport",
    "ensure_valid",
    "load_config",
    "parse_config",
    "resolve_access_token",
    "validate_config",
]
