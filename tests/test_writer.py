"""Tests for seqera_batch.render.writer."""

from __future__ import annotations

import json
from pathlib import Path

from seqera_batch.compiler import compile_environment
from seqera_batch.render.writer import BUILD_DIR, default_output_dir, write_artifacts


class TestDefaultOutputDir:
    def test_default_base(self):
        assert default_output_dir("demo") == BUILD_DIR / "demo"

    def test_custom_base(self, tmp_path):
        assert default_output_dir("demo", tmp_path) == tmp_path / "demo"


class TestWriteArtifacts:
    def test_layout(self, cfg, tmp_path):
        written = write_artifacts(compile_environment(cfg), tmp_path / "out")
        out = tmp_path / "out"
        assert written["compiled"] == out / "compiled.json"
        assert written["plan"] == out / "plan.json"
        assert written["user_data"] == out / "user-data.mime"
        assert written["policy:demo-head-policy"] == out / "policies" / "demo-head-policy.json"
        assert written["trust:demo-job-role"] == out / "trust" / "demo-job-role.json"
        assert all(p.is_file() for p in written.values())

    def test_policy_and_trust_counts(self, make_cfg, tmp_path):
        written = write_artifacts(
            compile_environment(make_cfg(use_spot_instances=True)), tmp_path
        )
        assert len([k for k in written if k.startswith("policy:")]) == 3
        assert len([k for k in written if k.startswith("trust:")]) == 6

    def test_user_data_content(self, cfg, tmp_path):
        compiled = compile_environment(cfg)
        written = write_artifacts(compiled, tmp_path)
        assert written["user_data"].read_text(encoding="utf-8") == compiled.bootstrap.content

    def test_json_is_valid(self, cfg, tmp_path):
        written = write_artifacts(compile_environment(cfg), tmp_path)
        plan = json.loads(written["plan"].read_text(encoding="utf-8"))
        assert plan[0]["kind"] == "iam_policy"
        policy = json.loads(written["policy:demo-job-policy"].read_text(encoding="utf-8"))
        assert policy["Version"] == "2012-10-17"

    def test_rerun_is_byte_identical(self, cfg, tmp_path):
        first = write_artifacts(compile_environment(cfg), tmp_path / "a")
        second = write_artifacts(compile_environment(cfg), tmp_path / "b")
        for key, path in first.items():
            assert path.read_bytes() == Path(second[key]).read_bytes(), key
