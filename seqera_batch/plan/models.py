"""Resource plan and compiled-output models.

A :class:`ResourcePlan` is an ordered list of :class:`ResourceSpec` entries
handed to the external provisioning layer.  Cross-resource references are
rendered into property values as tokens::

    ${<kind>.<name>.<attribute>}     e.g. ${iam_role.demo-head-role.arn}

``depends_on`` is taken from the :class:`ResourceRef` objects passed to
:meth:`ResourcePlan.add`; property text is never scanned for tokens.  The
plan refuses any reference to a resource that does not appear earlier in
the list, so the list order is always a valid creation order.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from seqera_batch.bootstrap.userdata import BootstrapPayload
from seqera_batch.derive.names import DerivationError, DerivedNames
from seqera_batch.iam.policies import PolicySet
from seqera_batch.iam.trust import RoleSet


class ResourceRef(BaseModel):
    """Pointer to an attribute of another resource in the plan."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: str
    attribute: str = "arn"

    @property
    def address(self) -> str:
        return f"{self.kind}.{self.name}"

    def token(self) -> str:
        """Render as an embeddable ``${kind.name.attribute}`` string."""
        return "${" + f"{self.kind}.{self.name}.{self.attribute}" + "}"


class ResourceSpec(BaseModel):
    """One resource to be created by the provisioning layer."""

    kind: str
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list)

    @property
    def address(self) -> str:
        return f"{self.kind}.{self.name}"


class ResourcePlan(BaseModel):
    """Resources in creation order."""

    resources: List[ResourceSpec] = Field(default_factory=list)

    def add(
        self,
        kind: str,
        name: str,
        properties: Dict[str, Any],
        *,
        refs: Sequence[ResourceRef] = (),
    ) -> ResourceSpec:
        """Append a resource that depends on every resource in *refs*.

        *refs* must name every resource whose token appears in *properties*,
        plus any resource referenced by value (e.g. a queue name).

        Raises
        ------
        DerivationError
            If the resource is already present or references one that is not.
        """
        known = set(self.addresses())
        address = f"{kind}.{name}"
        if address in known:
            raise DerivationError(f"Duplicate resource in plan: {address}")

        deps: List[str] = []
        for dep in (ref.address for ref in refs):
            if dep not in known:
                raise DerivationError(
                    f"{address} references {dep}, which is not defined before it"
                )
            if dep not in deps:
                deps.append(dep)

        spec = ResourceSpec(kind=kind, name=name, properties=properties, depends_on=deps)
        self.resources.append(spec)
        return spec

    def addresses(self) -> List[str]:
        return [r.address for r in self.resources]

    def get(self, kind: str, name: str) -> Optional[ResourceSpec]:
        for res in self.resources:
            if res.kind == kind and res.name == name:
                return res
        return None

    def of_kind(self, kind: str) -> List[ResourceSpec]:
        return [r for r in self.resources if r.kind == kind]


class CompiledEnvironment(BaseModel):
    """Everything the compiler produces for one input document."""

    derived: DerivedNames
    policies: PolicySet
    roles: RoleSet
    bootstrap: BootstrapPayload
    plan: ResourcePlan

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view with IAM documents rendered in AWS JSON form."""
        return {
            "derived": self.derived.model_dump(mode="json"),
            "policies": self.policies.to_iam(),
            "roles": [r.model_dump(mode="json") for r in self.roles.all()],
            "bootstrap": {
                "variant": self.bootstrap.variant.value,
                "size_bytes": self.bootstrap.size_bytes,
            },
            "plan": self.plan.model_dump(mode="json")["resources"],
        }

    def to_sorted_json(self, indent: int = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
