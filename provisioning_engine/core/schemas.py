"""Pydantic schemas for validation and serialization."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from provisioning_engine.core.models import RunTrigger


# ============================================
# Persisted Trigger
# ============================================

class TriggerRecord(BaseModel):
    """On-disk form of the last applied run trigger."""

    resource_id: str
    generation: str
    inventory_sha256: str = Field(min_length=64, max_length=64)
    trigger: str = Field(min_length=64, max_length=64)
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_trigger(cls, trigger: RunTrigger) -> "TriggerRecord":
        return cls(
            resource_id=trigger.resource_id,
            generation=trigger.generation,
            inventory_sha256=trigger.inventory_sha256,
            trigger=trigger.value,
        )

    def to_trigger(self) -> RunTrigger:
        return RunTrigger(
            resource_id=self.resource_id,
            generation=self.generation,
            inventory_sha256=self.inventory_sha256,
            value=self.trigger,
        )


# ============================================
# Terraform Outputs
# ============================================

class TerraformOutput(BaseModel):
    """Single entry of `terraform output -json`."""

    value: Any = None
    sensitive: bool = False
    type: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class TerraformOutputs(BaseModel):
    outputs: Dict[str, TerraformOutput]

    def get_value(self, name: str) -> Optional[Any]:
        entry = self.outputs.get(name)
        return entry.value if entry is not None else None
