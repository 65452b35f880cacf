# provisioning_engine/infrastructure/file/trigger_store.py
"""File-backed run trigger store."""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from provisioning_engine.core.errors import TriggerStoreError
from provisioning_engine.core.models import RunTrigger
from provisioning_engine.core.repository import TriggerStore
from provisioning_engine.core.schemas import TriggerRecord
from provisioning_engine.infrastructure.file.atomic import atomic_write_text

logger = logging.getLogger(__name__)


class FileTriggerStore(TriggerStore):
    """Keeps the last applied trigger as a JSON document next to the inventory."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @classmethod
    def beside(cls, inventory_path: Union[str, Path]) -> "FileTriggerStore":
        """Store placed alongside the inventory handoff file."""
        inventory_path = Path(inventory_path)
        return cls(inventory_path.with_name(f".{inventory_path.name}.trigger.json"))

    def load(self) -> Optional[RunTrigger]:
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
            record = TriggerRecord.model_validate_json(raw)
        except (OSError, ValidationError) as e:
            raise TriggerStoreError(f"Cannot read run trigger from {self.path}: {e}") from e

        return record.to_trigger()

    def save(self, trigger: RunTrigger) -> None:
        record = TriggerRecord.from_trigger(trigger)
        atomic_write_text(self.path, record.model_dump_json(indent=2) + "\n")
        logger.debug(f"[{trigger.resource_id}] Trigger persisted to {self.path}")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared run trigger at {self.path}")
