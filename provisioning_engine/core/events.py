"""Event emitters for the provisioning coordinator."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from provisioning_engine.core.events_model import ProvisioningEvent

logger = logging.getLogger(__name__)


ALLOWED_EVENTS = {
    "coordinator.rendering",
    "coordinator.polling",
    "coordinator.skipping",
    "coordinator.invoking",
    "coordinator.applied",
    "coordinator.skipped",
    "coordinator.failed",
}


class EventEmitter(ABC):
    """Abstract event emitter."""

    @abstractmethod
    def emit(self, events: Iterable[ProvisioningEvent]) -> None:
        """Emit one or more events."""
        pass


class LoggingEventEmitter(EventEmitter):
    """Logs events; nothing is retained."""

    def emit(self, events: Iterable[ProvisioningEvent]) -> None:
        for event in events:
            if event.event_type not in ALLOWED_EVENTS:
                raise ValueError(f"Invalid event type: {event.event_type}")
            if not event.resource_id:
                raise ValueError("Event must have resource_id")

            logger.info(
                f"[EVENT] {event.event_type} | resource={event.resource_id} run={event.run_id}"
            )


class MultiEventEmitter:
    """Fan-out to multiple emitters."""

    def __init__(self, emitters: Iterable[EventEmitter]):
        self._emitters = list(emitters)

    def emit(self, events: Iterable[ProvisioningEvent]):
        events = list(events)
        for emitter in self._emitters:
            emitter.emit(events)


class NullEventEmitter(EventEmitter):
    """No-op emitter (used when events are not needed)."""

    def emit(self, events: Iterable[ProvisioningEvent]) -> None:
        pass
