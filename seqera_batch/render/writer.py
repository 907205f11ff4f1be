"""Write a :class:`CompiledEnvironment` to disk.

Layout under the output directory::

    <out>/
      compiled.json              full bundle (derived values, policies, roles, plan)
      plan.json                  resource plan only
      user-data.mime             launch-template user-data
      policies/<name>.json       one IAM document per policy
      trust/<role>.json          one assume-role document per role

All JSON is serialised with **sorted keys** so re-running the compiler on
unchanged input leaves every file byte-for-byte identical.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from seqera_batch.plan.models import CompiledEnvironment

logger = logging.getLogger(__name__)

#: Default parent directory for compiled artifacts.
BUILD_DIR: Path = Path("build")


def default_output_dir(name_prefix: str, base: Optional[Path] = None) -> Path:
    """``<base>/<name_prefix>`` with *base* defaulting to :data:`BUILD_DIR`."""
    return (base if base is not None else BUILD_DIR) / name_prefix


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_artifacts(compiled: CompiledEnvironment, out_dir: str | Path) -> Dict[str, Path]:
    """Write every artifact of *compiled* below *out_dir*.

    Returns
    -------
    dict[str, Path]
        Artifact key → written path.  Keys: ``compiled``, ``plan``,
        ``user_data``, ``policy:<name>`` and ``trust:<role>``.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}

    written["compiled"] = _write(out / "compiled.json", compiled.to_sorted_json() + "\n")
    written["plan"] = _write(
        out / "plan.json",
        _dump(compiled.plan.model_dump(mode="json")["resources"]),
    )
    written["user_data"] = _write(out / "user-data.mime", compiled.bootstrap.content)

    for name, document in compiled.policies.to_iam().items():
        written[f"policy:{name}"] = _write(out / "policies" / f"{name}.json", _dump(document))

    for role in compiled.roles.all():
        written[f"trust:{role.name}"] = _write(
            out / "trust" / f"{role.name}.json", _dump(role.trust_document())
        )

    logger.info("Wrote %d artifacts to %s", len(written), out)
    return written
