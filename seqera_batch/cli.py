"""CLI entry point for seqera-batch, built on cli-core-yo.

Provides ``validate``, ``compile`` and ``userdata`` commands.

Usage::

    python -m seqera_batch --help
    python -m seqera_batch validate --config env.yaml
    python -m seqera_batch compile --config env.yaml --out build/dev
    python -m seqera_batch compile --config env.yaml --resolve-account --profile dev
    python -m seqera_batch userdata --config env.yaml > user-data.mime
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import typer
from cli_core_yo import output
from cli_core_yo.app import create_app
from cli_core_yo.runtime import _reset, initialize
from cli_core_yo.spec import CliSpec, XdgSpec

# ── App specification ────────────────────────────────────────────────────────

spec = CliSpec(
    prog_name="seqera-batch",
    app_display_name="Seqera Batch Environment",
    dist_name="seqera-batch-env",
    root_help=(
        "Compile a Seqera Platform compute environment backed by "
        "pre-built AWS Batch queues."
    ),
    xdg=XdgSpec(app_dir_name="seqera-batch"),
)

app = create_app(spec)


# ── Root callback (global options) ───────────────────────────────────────────


@app.callback()
def _root_callback(
    json_flag: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON."
    ),
) -> None:
    """Seqera Batch environment compiler."""
    _reset()
    debug = os.environ.get("CLI_CORE_YO_DEBUG") == "1"
    xdg_paths = app._cli_core_yo_xdg_paths  # type: ignore[attr-defined]
    initialize(spec, xdg_paths, json_mode=json_flag, debug=debug)


_CONFIG_OPTION = typer.Option(
    ...,
    "--config",
    "-c",
    help="Path to the environment YAML document.",
)


# ── validate command ─────────────────────────────────────────────────────────


@app.command()
def validate(
    config: str = _CONFIG_OPTION,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Check the input document against every rule and list all issues.

    Exits 0 when valid, 1 on validation failure, 3 if the file is missing.
    """
    from seqera_batch.workflow.compile_env import run_validate

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    output.action(f"Validating {config} ...")
    raise typer.Exit(run_validate(config))


# ── compile command ──────────────────────────────────────────────────────────


@app.command("compile")
def compile_cmd(
    config: str = _CONFIG_OPTION,
    out: Optional[str] = typer.Option(
        None,
        "--out",
        "-o",
        help="Output directory. Default: build/<name_prefix>.",
    ),
    resolve_account: bool = typer.Option(
        False,
        "--resolve-account",
        help="Look up the AWS account id via STS when the document omits it.",
    ),
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        help="AWS CLI profile for --resolve-account. Defaults to AWS_PROFILE.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Compile names, IAM documents, user-data and the resource plan.

    Environment variables:
      TOWER_ACCESS_TOKEN     Seqera access token when the document omits it.
      SEQERA_ACCESS_TOKEN    Fallback for TOWER_ACCESS_TOKEN.
      AWS_PROFILE            Default profile for --resolve-account.
    """
    from seqera_batch.workflow.compile_env import run_compile

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    output.action(f"Compiling {config} ...")
    rc = run_compile(
        config,
        out_dir=out,
        resolve_account=resolve_account,
        profile=profile,
    )
    raise typer.Exit(rc)


# ── userdata command ─────────────────────────────────────────────────────────


@app.command()
def userdata(config: str = _CONFIG_OPTION) -> None:
    """Print the launch-template user-data selected for the document."""
    from seqera_batch.workflow.compile_env import run_userdata

    raise typer.Exit(run_userdata(config))


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
