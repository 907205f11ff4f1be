"""Artifact output for compiled environments."""

from seqera_batch.render.writer import (
    BUILD_DIR,
    default_output_dir,
    write_artifacts,
)

__all__ = [
    "BUILD_DIR",
    "default_output_dir",
    "write_artifacts",
]
