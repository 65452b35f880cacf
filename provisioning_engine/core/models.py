"""Core domain models (business logic)."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from provisioning_engine.core.errors import ConfigurationRunFailed, UnreachableTarget


# -------------------------
# RESOURCE / PARAMETERS
# -------------------------

@dataclass(frozen=True)
class ResourceDescriptor:
    """Compute resource reported by the resource provider."""

    resource_id: str
    public_address: str
    admin_principal: str
    credential_reference: str
    generation: str
    private_address: Optional[str] = None


@dataclass(frozen=True)
class DeploymentParameters:
    """Fixed deployment parameters rendered into the inventory."""

    domain: Optional[str] = None
    repository_url: Optional[str] = None
    deploy_principal: Optional[str] = "deploy"
    working_directory: Optional[str] = None

    def resolved_working_directory(self) -> Optional[str]:
        if self.working_directory:
            return self.working_directory
        if not self.deploy_principal:
            return None
        return f"/home/{self.deploy_principal}/app"


@dataclass(frozen=True)
class InventoryRecord:
    """Rendered inventory document handed to the configuration runner."""

    content: str

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()


# -------------------------
# READINESS
# -------------------------

@dataclass(frozen=True)
class ReadinessPolicy:
    """Fixed-interval polling policy."""

    max_attempts: int = 30
    per_attempt_timeout: float = 5.0
    backoff_interval: float = 10.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.per_attempt_timeout <= 0:
            raise ValueError("per_attempt_timeout must be positive")
        if self.backoff_interval < 0:
            raise ValueError("backoff_interval must not be negative")


class ReadinessStatus(Enum):
    """Readiness polling outcome."""

    PENDING = "PENDING"
    READY = "READY"
    FAILED = "FAILED"


@dataclass
class ReadinessState:
    """State of a single polling session."""

    max_attempts: int
    attempts: int = 0
    outcome: ReadinessStatus = ReadinessStatus.PENDING
    last_error: Optional[str] = None

    def record_success(self) -> None:
        """PENDING -> READY."""
        if self.outcome != ReadinessStatus.PENDING:
            raise ValueError(f"Cannot mark ready from {self.outcome.value} state")
        if self.attempts >= self.max_attempts:
            raise ValueError("No attempts left")

        self.attempts += 1
        self.outcome = ReadinessStatus.READY

    def record_failure(self, error: Optional[str] = None) -> None:
        """Count a failed probe; moves to FAILED once attempts are exhausted."""
        if self.outcome != ReadinessStatus.PENDING:
            raise ValueError(f"Cannot record failure from {self.outcome.value} state")

        self.attempts += 1
        self.last_error = error
        if self.attempts >= self.max_attempts:
            self.outcome = ReadinessStatus.FAILED

    def is_finished(self) -> bool:
        return self.outcome != ReadinessStatus.PENDING


@dataclass(frozen=True)
class ReadinessOutcome:
    """Result returned by the readiness poller."""

    status: ReadinessStatus
    attempts: int
    last_error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status == ReadinessStatus.READY

    @classmethod
    def from_state(cls, state: ReadinessState) -> "ReadinessOutcome":
        if not state.is_finished():
            raise ValueError("Polling session still pending")
        return cls(status=state.outcome, attempts=state.attempts, last_error=state.last_error)


# -------------------------
# RUN TRIGGER
# -------------------------

@dataclass(frozen=True)
class RunTrigger:
    """Idempotency key for one configuration run."""

    resource_id: str
    generation: str
    inventory_sha256: str
    value: str

    @classmethod
    def compute(cls, descriptor: ResourceDescriptor, record: InventoryRecord) -> "RunTrigger":
        """
        Hash the resource generation together with the inventory content.

        Fields are length-prefixed so ("ab", "c") and ("a", "bc") differ.
        """
        digest = hashlib.sha256()
        for part in (descriptor.generation, record.content):
            encoded = part.encode("utf-8")
            digest.update(str(len(encoded)).encode("ascii"))
            digest.update(b":")
            digest.update(encoded)

        return cls(
            resource_id=descriptor.resource_id,
            generation=descriptor.generation,
            inventory_sha256=record.sha256,
            value=digest.hexdigest(),
        )

    def matches(self, other: Optional["RunTrigger"]) -> bool:
        return other is not None and other.value == self.value


# -------------------------
# RUN OUTCOME
# -------------------------

class RunStatus(Enum):
    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class FailureReason(Enum):
    UNREACHABLE_TARGET = "UnreachableTarget"
    CONFIGURATION_RUN_FAILED = "ConfigurationRunFailed"


@dataclass(frozen=True)
class RunOutcome:
    """Terminal result of one coordinator invocation."""

    status: RunStatus
    message: str
    reason: Optional[FailureReason] = None
    trigger: Optional[str] = None
    attempts: int = 0
    exit_code: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (RunStatus.APPLIED, RunStatus.SKIPPED)

    @classmethod
    def applied(cls, trigger: RunTrigger, attempts: int) -> "RunOutcome":
        return cls(
            status=RunStatus.APPLIED,
            message=f"Configuration applied to {trigger.resource_id} (generation {trigger.generation})",
            trigger=trigger.value,
            attempts=attempts,
            exit_code=0,
        )

    @classmethod
    def skipped(cls, trigger: RunTrigger, attempts: int) -> "RunOutcome":
        return cls(
            status=RunStatus.SKIPPED,
            message=f"Nothing changed for {trigger.resource_id} (generation {trigger.generation})",
            trigger=trigger.value,
            attempts=attempts,
        )

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        message: str,
        attempts: int = 0,
        exit_code: Optional[int] = None,
        trigger: Optional[str] = None,
    ) -> "RunOutcome":
        return cls(
            status=RunStatus.FAILED,
            message=message,
            reason=reason,
            attempts=attempts,
            exit_code=exit_code,
            trigger=trigger,
        )

    def raise_for_status(self) -> None:
        """Raise the matching ProvisioningError for a FAILED outcome."""
        if self.status != RunStatus.FAILED:
            return
        if self.reason == FailureReason.UNREACHABLE_TARGET:
            raise UnreachableTarget(self.message, attempts=self.attempts)
        raise ConfigurationRunFailed(self.message, exit_code=self.exit_code)


# -------------------------
# COORDINATOR RUN
# -------------------------

class CoordinatorState(Enum):
    """Coordinator state machine."""

    START = "START"
    RENDERING = "RENDERING"
    POLLING = "POLLING"
    SKIPPING = "SKIPPING"
    INVOKING = "INVOKING"
    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({
    CoordinatorState.APPLIED,
    CoordinatorState.SKIPPED,
    CoordinatorState.FAILED,
})


@dataclass
class CoordinatorRun:
    """Record of one coordinator invocation."""

    resource_id: str
    generation: str
    run_id: UUID = field(default_factory=uuid4)
    state: CoordinatorState = CoordinatorState.START

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    error_message: Optional[str] = None

    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
