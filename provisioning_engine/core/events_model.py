"""Event models for the provisioning coordinator."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from provisioning_engine.core.models import CoordinatorRun


@dataclass
class ProvisioningEvent:
    """Coordinator state transition event."""

    event_type: str
    run_id: UUID
    resource_id: str
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def for_transition(run: CoordinatorRun, **metadata) -> "ProvisioningEvent":
        """Build the event describing the run's current state."""
        return ProvisioningEvent(
            event_type=f"coordinator.{run.state.value.lower()}",
            run_id=run.run_id,
            resource_id=run.resource_id,
            timestamp=datetime.now(timezone.utc),
            metadata={
                "generation": run.generation,
                **metadata,
            },
        )
