"""Launch-template user-data selection."""

from seqera_batch.bootstrap.userdata import (
    AWS_CLI_PATH,
    ECS_AGENT_SETTINGS,
    KERNEL_SETTINGS,
    MAX_USER_DATA_BYTES,
    SCRATCH_MOUNT,
    BootstrapPayload,
    BootstrapVariant,
    render_payload,
    scratch_volume_commands,
    select_bootstrap,
    shell_script,
)

__all__ = [
    "AWS_CLI_PATH",
    "BootstrapPayload",
    "BootstrapVariant",
    "ECS_AGENT_SETTINGS",
    "KERNEL_SETTINGS",
    "MAX_USER_DATA_BYTES",
    "SCRATCH_MOUNT",
    "render_payload",
    "scratch_volume_commands",
    "select_bootstrap",
    "shell_script",
]
