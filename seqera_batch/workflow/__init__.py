"""Command workflows (validate, compile, userdata)."""

from seqera_batch.workflow.compile_env import (
    EXIT_AWS_FAILURE,
    EXIT_IO_FAILURE,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILURE,
    run_compile,
    run_userdata,
    run_validate,
)

__all__ = [
    "EXIT_AWS_FAILURE",
    "EXIT_IO_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_FAILURE",
    "run_compile",
    "run_userdata",
    "run_validate",
]
