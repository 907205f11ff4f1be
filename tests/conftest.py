"""Shared fixtures: a minimal valid input document and a factory for variants."""

from __future__ import annotations

from typing import Any, Dict

import pytest
import yaml

from seqera_batch.config.models import InputConfig

BASE_CONFIG: Dict[str, Any] = {
    "name_prefix": "demo",
    "region": "us-east-1",
    "subnet_ids": ["subnet-a", "subnet-b"],
    "security_group_ids": ["sg-a"],
    "work_bucket_name": "wb",
    "platform_workspace_id": 42,
    "platform_access_token": "tok-123",
}


def make_config(**overrides: Any) -> InputConfig:
    """Return an :class:`InputConfig` built from :data:`BASE_CONFIG` + *overrides*."""
    return InputConfig(**{**BASE_CONFIG, **overrides})


@pytest.fixture
def make_cfg():
    return make_config


@pytest.fixture
def cfg() -> InputConfig:
    return make_config()


@pytest.fixture
def write_config(tmp_path):
    """Write :data:`BASE_CONFIG` + overrides to a YAML file and return its path."""

    def _write(**overrides: Any) -> str:
        path = tmp_path / "env.yaml"
        path.write_text(yaml.safe_dump({**BASE_CONFIG, **overrides}), encoding="utf-8")
        return str(path)

    return _write
