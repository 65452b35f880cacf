# provisioning_engine/core/repository.py

from abc import ABC, abstractmethod
from typing import Optional

from provisioning_engine.core.models import RunTrigger


class TriggerStore(ABC):
    """
    Persistence contract for the last applied run trigger.
    """

    @abstractmethod
    def load(self) -> Optional[RunTrigger]:
        """
        Fetch the last persisted trigger.
        Returns None if nothing has been applied yet.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, trigger: RunTrigger) -> None:
        """
        Persist the trigger of a successful configuration run.
        Must replace the previous value all-or-nothing.
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """
        Forget the persisted trigger so the next run re-applies.
        """
        raise NotImplementedError
