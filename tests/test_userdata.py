"""Tests for seqera_batch.bootstrap.userdata.

Covers:
1. Variant selection from enable_fusion
2. Fusion payload carries the NVMe discovery block, cli payload does not
3. 0 / 1 / N disk mount-preparation sequences
4. Static runtime and kernel settings in both variants
5. MIME framing and size limit
"""

from __future__ import annotations

import pytest

from seqera_batch.bootstrap.userdata import (
    AWS_CLI_INSTALL_DIR,
    ECS_AGENT_SETTINGS,
    KERNEL_SETTINGS,
    MAX_USER_DATA_BYTES,
    MIME_BOUNDARY,
    SCRATCH_MOUNT,
    BootstrapVariant,
    render_payload,
    scratch_volume_commands,
    select_bootstrap,
    shell_script,
)
from seqera_batch.derive.names import DerivationError


class TestSelection:
    def test_fusion_enabled(self, make_cfg):
        payload = select_bootstrap(make_cfg(enable_fusion=True, enable_wave=True))
        assert payload.variant is BootstrapVariant.FUSION

    def test_fusion_disabled(self, cfg):
        assert select_bootstrap(cfg).variant is BootstrapVariant.CLI

    def test_deterministic(self, cfg):
        assert select_bootstrap(cfg) == select_bootstrap(cfg)

    def test_only_fusion_flag_matters(self, make_cfg):
        a = select_bootstrap(make_cfg(name_prefix="one"))
        b = select_bootstrap(make_cfg(name_prefix="two", use_spot_instances=True))
        assert a.content == b.content


class TestVariantContent:
    def test_fusion_has_disk_discovery(self):
        script = shell_script(BootstrapVariant.FUSION)
        assert "nvme list" in script
        assert "NVME_DISKS=" in script
        assert "if (( NUM_DISKS == 1 )); then" in script
        assert "elif (( NUM_DISKS > 1 )); then" in script
        assert f"chmod a+w {SCRATCH_MOUNT}" in script

    def test_cli_has_no_disk_discovery(self):
        script = shell_script(BootstrapVariant.CLI)
        assert "nvme" not in script
        assert "pvcreate" not in script
        assert SCRATCH_MOUNT not in script
        assert AWS_CLI_INSTALL_DIR in script

    @pytest.mark.parametrize("variant", list(BootstrapVariant))
    def test_shared_sections(self, variant):
        script = shell_script(variant)
        assert script.startswith("#!/bin/bash\n")
        assert "amazon-ssm-agent" in script
        for key, value in ECS_AGENT_SETTINGS:
            assert f"echo {key}={value} >> /etc/ecs/ecs.config" in script
        for key, value in KERNEL_SETTINGS:
            assert f"echo {key}={value} >> /etc/sysctl.conf" in script
        assert "sysctl -p" in script

    def test_kernel_tuning_pair(self):
        assert dict(KERNEL_SETTINGS) == {
            "vm.min_free_kbytes": "1048576",
            "vm.swappiness": "10",
        }


class TestScratchVolume:
    def test_no_disks(self):
        assert scratch_volume_commands([]) == []

    def test_single_disk(self):
        assert scratch_volume_commands(["/dev/nvme1n1"]) == [
            "mkfs -t xfs /dev/nvme1n1",
            f"mount /dev/nvme1n1 {SCRATCH_MOUNT}",
        ]

    def test_two_disks(self):
        cmds = scratch_volume_commands(["/dev/nvme1n1", "/dev/nvme2n1"])
        assert cmds[0] == "pvcreate /dev/nvme1n1 /dev/nvme2n1"
        assert cmds[1] == "vgcreate scratch_fusion /dev/nvme1n1 /dev/nvme2n1"
        assert cmds[2].startswith("lvcreate -l 100%FREE")
        assert cmds[-1] == f"mount /dev/mapper/scratch_fusion-volume {SCRATCH_MOUNT}"

    def test_single_and_multi_differ(self):
        one = scratch_volume_commands(["/dev/nvme1n1"])
        many = scratch_volume_commands(["/dev/nvme1n1", "/dev/nvme2n1", "/dev/nvme3n1"])
        assert one != many
        assert not any(c.startswith("pvcreate") for c in one)

    def test_branches_match_payload(self):
        script = shell_script(BootstrapVariant.FUSION)
        single, striped = script.split("elif (( NUM_DISKS > 1 )); then")
        assert "mkfs -t xfs ${NVME_DISKS[0]}" in single
        assert "pvcreate ${NVME_DISKS[@]}" in striped
        assert "pvcreate" not in single


class TestMimePayload:
    @pytest.mark.parametrize("variant", list(BootstrapVariant))
    def test_framing(self, variant):
        content = render_payload(variant).content
        assert content.startswith("MIME-Version: 1.0\n")
        assert f'boundary="{MIME_BOUNDARY}"' in content
        assert "Content-Type: text/x-shellscript" in content
        assert content.rstrip().endswith(f"--{MIME_BOUNDARY}--")

    @pytest.mark.parametrize("variant", list(BootstrapVariant))
    def test_within_size_limit(self, variant):
        assert render_payload(variant).size_bytes <= MAX_USER_DATA_BYTES

    def test_oversize_raises(self, monkeypatch):
        monkeypatch.setattr("seqera_batch.bootstrap.userdata.MAX_USER_DATA_BYTES", 10)
        with pytest.raises(DerivationError, match="limit is 10"):
            render_payload(BootstrapVariant.CLI)
