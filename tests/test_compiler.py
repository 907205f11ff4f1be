"""Tests for seqera_batch.compiler."""

from __future__ import annotations

import json

import pytest

from seqera_batch.bootstrap.userdata import BootstrapVariant
from seqera_batch.compiler import compile_environment
from seqera_batch.config.validation import ConfigValidationError


class TestCompileEnvironment:
    def test_bundle_contents(self, cfg):
        compiled = compile_environment(cfg)
        assert compiled.derived.name_prefix == "demo"
        assert compiled.bootstrap.variant is BootstrapVariant.CLI
        assert compiled.roles.spot_fleet is None
        assert compiled.plan.resources

    def test_validation_is_fail_fast(self, make_cfg):
        with pytest.raises(ConfigValidationError) as excinfo:
            compile_environment(make_cfg(enable_fusion=True, subnet_ids=[]))
        fields = {i.field for i in excinfo.value.issues}
        assert fields == {"enable_fusion", "subnet_ids"}

    def test_byte_identical_output(self, make_cfg):
        a = compile_environment(make_cfg(tags={"b": "2", "a": "1"}))
        b = compile_environment(make_cfg(tags={"a": "1", "b": "2"}))
        assert a.to_sorted_json() == b.to_sorted_json()

    def test_to_dict_sections(self, make_cfg):
        compiled = compile_environment(
            make_cfg(use_spot_instances=True, enable_wave=True, enable_fusion=True)
        )
        data = json.loads(compiled.to_sorted_json())
        assert set(data) == {"derived", "policies", "roles", "bootstrap", "plan"}
        assert data["bootstrap"]["variant"] == "fusion"
        assert data["bootstrap"]["size_bytes"] == compiled.bootstrap.size_bytes
        assert len(data["roles"]) == 6
        assert data["derived"]["compute_allocation_strategy"] == "SPOT_CAPACITY_OPTIMIZED"

    def test_access_token_not_serialised(self, cfg):
        assert "tok-123" not in compile_environment(cfg).to_sorted_json()

    def test_placeholder_text_in_user_fields(self, make_cfg):
        cfg = make_cfg(
            extra_config='cleanup = "${workflow.projectDir.parent}"',
            post_run_script="rm -rf ${a.b.c}",
            tags={"note": "${params.input.path}"},
        )
        compiled = compile_environment(cfg)
        env = compiled.plan.get("seqera_compute_env", compiled.derived.platform_env_name)
        config = env.properties["body"]["computeEnv"]["config"]
        assert config["nextflowConfig"] == 'cleanup = "${workflow.projectDir.parent}"'
        assert config["postRunScript"] == "rm -rf ${a.b.c}"
        assert "${params.input.path}" in compiled.to_sorted_json()
