"""Seqera Batch Environment - configuration compiler.

Turns a small YAML input document into the validated, fully derived
description of a Seqera Platform compute environment that runs on
pre-built AWS Batch queues: resource names, IAM policy documents,
launch-template user-data and a dependency-ordered resource plan.
"""

try:
    from importlib.metadata import version

    __version__ = version("seqera-batch-env")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
