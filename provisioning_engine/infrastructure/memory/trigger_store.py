# provisioning_engine/infrastructure/memory/trigger_store.py

from threading import Lock
from typing import Optional

from provisioning_engine.core.models import RunTrigger
from provisioning_engine.core.repository import TriggerStore


class InMemoryTriggerStore(TriggerStore):
    def __init__(self, initial: Optional[RunTrigger] = None):
        self._trigger = initial
        self._lock = Lock()
        self.saves = 0

    def load(self) -> Optional[RunTrigger]:
        return self._trigger

    def save(self, trigger: RunTrigger) -> None:
        with self._lock:
            self._trigger = trigger
            self.saves += 1

    def clear(self) -> None:
        with self._lock:
            self._trigger = None
