"""Load an :class:`InputConfig` from a YAML document.

Accepted layouts::

    # flat
    name_prefix: genomics-dev
    region: eu-west-1
    ...

    # wrapped
    environment:
      name_prefix: genomics-dev
      ...

The Seqera access token is normally kept out of the file.  When the
document does not set ``platform_access_token`` the first non-empty value
among :data:`ACCESS_TOKEN_ENV_VARS` is used.

Type errors raised by pydantic are converted to :class:`ValidationIssue`
objects so callers see one uniform error format for malformed files and
rule violations alike.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml
from pydantic import ValidationError

from seqera_batch.config.models import InputConfig
from seqera_batch.config.validation import ConfigValidationError, ValidationIssue

logger = logging.getLogger(__name__)

WRAPPER_KEY = "environment"

ACCESS_TOKEN_ENV_VARS: List[str] = [
    "TOWER_ACCESS_TOKEN",
    "SEQERA_ACCESS_TOKEN",
]


def resolve_access_token(raw: Mapping[str, Any]) -> str:
    """Return the token from *raw*, falling back to the environment.

    Precedence: ``platform_access_token`` key → ``TOWER_ACCESS_TOKEN`` →
    ``SEQERA_ACCESS_TOKEN`` → empty string.
    """
    token = raw.get("platform_access_token")
    if token:
        return str(token)
    for env_var in ACCESS_TOKEN_ENV_VARS:
        value = os.environ.get(env_var, "")
        if value:
            logger.debug("Using Seqera access token from %s", env_var)
            return value
    return ""


def _issues_from_pydantic(exc: ValidationError) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        issues.append(ValidationIssue(field=loc, reason=err.get("msg", "invalid value")))
    return issues


def parse_config(raw: Mapping[str, Any]) -> InputConfig:
    """Build an :class:`InputConfig` from an already-parsed mapping.

    Raises:
        ConfigValidationError: If a field is missing, unknown or has the
            wrong type.
    """
    data: Dict[str, Any] = dict(raw)
    wrapped = data.get(WRAPPER_KEY)
    if isinstance(wrapped, Mapping):
        data = dict(wrapped)

    data["platform_access_token"] = resolve_access_token(data)

    try:
        return InputConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigValidationError(_issues_from_pydantic(exc)) from exc


def load_config(path: str | Path) -> InputConfig:
    """Read and parse the YAML document at *path*.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ConfigValidationError: If the YAML is unparsable, not a mapping, or
            fails type checks.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigValidationError(
            [ValidationIssue(field="<file>", reason=f"invalid YAML: {exc}")]
        ) from exc

    if not isinstance(raw, Mapping):
        raise ConfigValidationError(
            [ValidationIssue(field="<file>", reason="top level must be a mapping")]
        )

    logger.debug("Loaded config from %s", path)
    return parse_config(raw)
