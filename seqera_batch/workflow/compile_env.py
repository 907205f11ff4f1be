"""Command workflows behind the CLI.

Each ``run_*`` function returns one of the ``EXIT_*`` codes and reports
progress through :mod:`seqera_batch.ui`:

- :func:`run_validate` — load + validate, print every issue.
- :func:`run_compile` — load, optionally resolve the account id via STS,
  compile, write artifacts.
- :func:`run_userdata` — load, validate, print the selected user-data.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

from seqera_batch import ui
from seqera_batch.config.loader import load_config
from seqera_batch.config.models import InputConfig
from seqera_batch.config.validation import ConfigValidationError, validate_config
from seqera_batch.derive.names import DerivationError

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_AWS_FAILURE = 2
EXIT_IO_FAILURE = 3


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load(config_path: str, *, stderr: bool = False) -> Tuple[Optional[InputConfig], int]:
    """Load *config_path*, printing problems.  Returns ``(cfg, exit_code)``."""
    try:
        return load_config(config_path), EXIT_SUCCESS
    except FileNotFoundError as exc:
        ui.fail(str(exc), stderr=stderr)
        return None, EXIT_IO_FAILURE
    except ConfigValidationError as exc:
        ui.validation_issues(exc.issues, stderr=stderr)
        return None, EXIT_VALIDATION_FAILURE


def _with_account_id(cfg: InputConfig, profile: Optional[str]) -> Tuple[InputConfig, int]:
    """Fill ``account_id`` via STS unless the document already sets it."""
    if cfg.account_id:
        return cfg, EXIT_SUCCESS

    from seqera_batch.aws.context import AWSContext, resolve_profile

    ui.step("Resolving AWS account id via STS")
    try:
        aws_ctx = AWSContext.build(cfg.region, resolve_profile(profile, cfg.profile))
    except RuntimeError as exc:
        logger.error("AWS context failed: %s", exc)
        ui.fail(f"Could not resolve AWS account: {exc}")
        return cfg, EXIT_AWS_FAILURE

    ui.ok(f"AWS account {aws_ctx.account_id} ({aws_ctx.caller_arn})")
    return cfg.model_copy(update={"account_id": aws_ctx.account_id}), EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


def run_validate(config_path: str) -> int:
    """Validate the document at *config_path*."""
    ui.phase("VALIDATE")
    cfg, rc = _load(config_path)
    if cfg is None:
        return rc

    report = validate_config(cfg)
    if not report.passed:
        ui.validation_issues(report.issues)
        logger.error("Validation failed with %d issue(s).", len(report.issues))
        return EXIT_VALIDATION_FAILURE

    ui.ok(f"{config_path} is valid")
    return EXIT_SUCCESS


def run_compile(
    config_path: str,
    *,
    out_dir: Optional[str] = None,
    resolve_account: bool = False,
    profile: Optional[str] = None,
) -> int:
    """Compile the document at *config_path* and write artifacts."""
    from seqera_batch.compiler import compile_environment
    from seqera_batch.render.writer import default_output_dir, write_artifacts

    ui.phase("COMPILE")
    cfg, rc = _load(config_path)
    if cfg is None:
        return rc

    if resolve_account:
        cfg, rc = _with_account_id(cfg, profile)
        if rc != EXIT_SUCCESS:
            return rc

    try:
        compiled = compile_environment(cfg)
    except ConfigValidationError as exc:
        ui.validation_issues(exc.issues)
        return EXIT_VALIDATION_FAILURE
    except DerivationError as exc:
        ui.error_panel("Internal error", str(exc))
        raise

    derived = compiled.derived
    ui.ok(f"Compiled {len(compiled.plan.resources)} resources")
    ui.detail("Work directory", derived.work_dir_uri)
    ui.detail("Head queue", derived.head_queue_name)
    ui.detail("Compute queue", derived.compute_queue_name)
    ui.detail("Compute strategy", derived.compute_allocation_strategy.value)
    ui.detail("User-data", compiled.bootstrap.variant.value)

    target = Path(out_dir) if out_dir else default_output_dir(derived.name_prefix)
    try:
        written = write_artifacts(compiled, target)
    except OSError as exc:
        logger.error("Writing artifacts failed: %s", exc)
        ui.fail(f"Could not write artifacts to {target}: {exc}")
        return EXIT_IO_FAILURE

    ui.artifacts_table(written)
    return EXIT_SUCCESS


def run_userdata(config_path: str) -> int:
    """Print the user-data payload selected for *config_path* to stdout.

    Problems are reported on stderr so stdout holds only the payload.
    """
    from seqera_batch.bootstrap.userdata import select_bootstrap

    cfg, rc = _load(config_path, stderr=True)
    if cfg is None:
        return rc

    report = validate_config(cfg)
    if not report.passed:
        ui.validation_issues(report.issues, stderr=True)
        return EXIT_VALIDATION_FAILURE

    sys.stdout.write(select_bootstrap(cfg).content)
    return EXIT_SUCCESS
