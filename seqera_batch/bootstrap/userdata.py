"""Launch-template user-data for Batch compute instances.

Two static variants exist and the input only chooses between them:

* ``fusion`` — monitoring agent, container runtime settings, and the
  NVMe instance-store scratch volume Fusion uses as its local cache.
* ``cli`` — monitoring agent, container runtime settings, and a
  self-contained AWS CLI that Nextflow mounts into task containers to
  stage data when Fusion is off.  No disk discovery.

The scratch-volume step handles three cases at boot time::

    0 disks   nothing to do
    1 disk    mkfs + mount the disk directly
    N disks   pvcreate + vgcreate + lvcreate across all disks, then mkfs + mount

:func:`scratch_volume_commands` returns the same command sequences for a
known device list; the shell branches in the payload are produced by the
same helpers.

The payload is a MIME multi-part document, the format AWS Batch requires
for launch-template user-data.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from seqera_batch.config.models import InputConfig
from seqera_batch.derive.names import DerivationError

logger = logging.getLogger(__name__)

# ── constants ────────────────────────────────────────────────────────

#: EC2 limit on raw user-data size.
MAX_USER_DATA_BYTES = 16 * 1024

MIME_BOUNDARY = "==SEQERA-BATCH-BOUNDARY=="

SCRATCH_MOUNT = "/scratch/fusion"
SCRATCH_VOLUME_GROUP = "scratch_fusion"
SCRATCH_LOGICAL_VOLUME = "volume"
NVME_MODEL = "Amazon EC2 NVMe Instance Storage"

AWS_CLI_INSTALL_DIR = "/opt/aws-cli"
AWS_CLI_PATH = f"{AWS_CLI_INSTALL_DIR}/v2/current/bin/aws"

#: Written to /etc/ecs/ecs.config on every instance; not configurable.
ECS_AGENT_SETTINGS: Tuple[Tuple[str, str], ...] = (
    ("ECS_IMAGE_PULL_BEHAVIOR", "once"),
    ("ECS_ENABLE_SPOT_INSTANCE_DRAINING", "true"),
    ("ECS_CONTAINER_CREATE_TIMEOUT", "10m"),
    ("ECS_CONTAINER_START_TIMEOUT", "10m"),
    ("ECS_CONTAINER_STOP_TIMEOUT", "10m"),
    ("ECS_MANIFEST_PULL_TIMEOUT", "10m"),
)

#: Memory-pressure tuning applied via sysctl; not configurable.
KERNEL_SETTINGS: Tuple[Tuple[str, str], ...] = (
    ("vm.min_free_kbytes", "1048576"),
    ("vm.swappiness", "10"),
)


class BootstrapVariant(str, Enum):
    FUSION = "fusion"
    CLI = "cli"


class BootstrapPayload(BaseModel):
    """User-data text and the variant it was rendered from."""

    model_config = ConfigDict(frozen=True)

    variant: BootstrapVariant
    content: str

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))


# ── scratch volume commands ──────────────────────────────────────────


def single_disk_commands(device: str) -> List[str]:
    """Format *device* and mount it at :data:`SCRATCH_MOUNT`."""
    return [
        f"mkfs -t xfs {device}",
        f"mount {device} {SCRATCH_MOUNT}",
    ]


def striped_volume_commands(devices: str) -> List[str]:
    """Aggregate *devices* (space separated) into one logical volume and mount it."""
    mapper = f"/dev/mapper/{SCRATCH_VOLUME_GROUP}-{SCRATCH_LOGICAL_VOLUME}"
    return [
        f"pvcreate {devices}",
        f"vgcreate {SCRATCH_VOLUME_GROUP} {devices}",
        f"lvcreate -l 100%FREE -n {SCRATCH_LOGICAL_VOLUME} {SCRATCH_VOLUME_GROUP}",
        f"mkfs -t xfs {mapper}",
        f"mount {mapper} {SCRATCH_MOUNT}",
    ]


def scratch_volume_commands(devices: Sequence[str]) -> List[str]:
    """Return the mount-preparation sequence for a known device list."""
    if not devices:
        return []
    if len(devices) == 1:
        return single_disk_commands(devices[0])
    return striped_volume_commands(" ".join(devices))


# ── script sections ──────────────────────────────────────────────────


def _indent(lines: Sequence[str], width: int = 4) -> List[str]:
    pad = " " * width
    return [pad + line for line in lines]


def _monitoring_section() -> List[str]:
    return [
        "# monitoring agent",
        "yum install -y amazon-ssm-agent amazon-cloudwatch-agent",
        "systemctl enable --now amazon-ssm-agent",
    ]


def _runtime_section() -> List[str]:
    lines = ["# container runtime"]
    lines += [f"echo {key}={value} >> /etc/ecs/ecs.config" for key, value in ECS_AGENT_SETTINGS]
    lines.append("# kernel memory pressure")
    lines += [f"echo {key}={value} >> /etc/sysctl.conf" for key, value in KERNEL_SETTINGS]
    lines.append("sysctl -p")
    return lines


def _aws_cli_section() -> List[str]:
    return [
        "# aws cli for task staging",
        "yum install -y unzip",
        'curl -fsSL "https://awscli.amazonaws.com/awscli-exe-linux-$(uname -m).zip" -o /tmp/awscliv2.zip',
        "unzip -q /tmp/awscliv2.zip -d /tmp",
        f"/tmp/aws/install -i {AWS_CLI_INSTALL_DIR} -b /usr/local/bin",
        "rm -rf /tmp/aws /tmp/awscliv2.zip",
    ]


def _scratch_volume_section() -> List[str]:
    lines = [
        "# nvme instance-store scratch volume",
        "yum install -y nvme-cli lvm2",
        f"mkdir -p {SCRATCH_MOUNT}",
        f"NVME_DISKS=($(nvme list | grep '{NVME_MODEL}' | awk '{{ print $1 }}'))",
        "NUM_DISKS=${#NVME_DISKS[@]}",
        "if (( NUM_DISKS == 1 )); then",
    ]
    lines += _indent(single_disk_commands("${NVME_DISKS[0]}"))
    lines.append("elif (( NUM_DISKS > 1 )); then")
    lines += _indent(striped_volume_commands("${NVME_DISKS[@]}"))
    lines.append("fi")
    lines.append(f"chmod a+w {SCRATCH_MOUNT}")
    return lines


def shell_script(variant: BootstrapVariant) -> str:
    """Return the boot script for *variant* (without MIME framing)."""
    lines = ["#!/bin/bash", "set -x", ""]
    lines += _monitoring_section() + [""]
    lines += _runtime_section() + [""]
    if variant is BootstrapVariant.FUSION:
        lines += _scratch_volume_section()
    else:
        lines += _aws_cli_section()
    return "\n".join(lines) + "\n"


def mime_wrap(script: str) -> str:
    """Wrap *script* in a single-part MIME multi-part document."""
    return (
        "MIME-Version: 1.0\n"
        f'Content-Type: multipart/mixed; boundary="{MIME_BOUNDARY}"\n'
        "\n"
        f"--{MIME_BOUNDARY}\n"
        'Content-Type: text/x-shellscript; charset="us-ascii"\n'
        "\n"
        f"{script}"
        "\n"
        f"--{MIME_BOUNDARY}--\n"
    )


# ── public API ───────────────────────────────────────────────────────


def render_payload(variant: BootstrapVariant) -> BootstrapPayload:
    """Render *variant* and enforce the user-data size limit.

    Raises
    ------
    DerivationError
        If the rendered payload exceeds :data:`MAX_USER_DATA_BYTES`.
    """
    payload = BootstrapPayload(variant=variant, content=mime_wrap(shell_script(variant)))
    if payload.size_bytes > MAX_USER_DATA_BYTES:
        raise DerivationError(
            f"{variant.value} user-data is {payload.size_bytes} bytes; "
            f"limit is {MAX_USER_DATA_BYTES}"
        )
    return payload


def select_bootstrap(cfg: InputConfig) -> BootstrapPayload:
    """Pick the ``fusion`` payload when Fusion is enabled, ``cli`` otherwise."""
    variant = BootstrapVariant.FUSION if cfg.enable_fusion else BootstrapVariant.CLI
    logger.debug("Selected %s user-data for %s", variant.value, cfg.name_prefix)
    return render_payload(variant)
