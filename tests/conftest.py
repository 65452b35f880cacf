#tests\conftest.py

"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import List

import pytest

from provisioning_engine.core.events import LoggingEventEmitter
from provisioning_engine.core.events_model import ProvisioningEvent
from provisioning_engine.core.models import DeploymentParameters, ResourceDescriptor
from provisioning_engine.infrastructure.file.trigger_store import FileTriggerStore
from provisioning_engine.orchestrator.coordinator import ProvisioningCoordinator
from provisioning_engine.readiness.poller import ReadinessPoller
from provisioning_engine.readiness.transport import ProbeResult, ProbeTransport
from provisioning_engine.runner.ansible import ConfigurationRunner, RunnerResult


class FakeTransport(ProbeTransport):
    """Succeeds from the Nth probe on (never, if succeed_on is None)."""

    def __init__(self, succeed_on=1):
        self.succeed_on = succeed_on
        self.calls: List[dict] = []

    def probe(self, address, principal, credential, timeout):
        self.calls.append({
            "address": address,
            "principal": principal,
            "credential": credential,
            "timeout": timeout,
        })
        if self.succeed_on is not None and len(self.calls) >= self.succeed_on:
            return ProbeResult(ok=True)
        return ProbeResult(ok=False, error="Connection refused")

    def reset(self, succeed_on=1):
        self.succeed_on = succeed_on
        self.calls = []


class FakeRunner(ConfigurationRunner):
    """Records invocations and returns a configurable exit code."""

    def __init__(self, exit_code: int = 0):
        self.exit_code = exit_code
        self.invocations: List[dict] = []

    def run(self, inventory_path: Path) -> RunnerResult:
        self.invocations.append({
            "inventory_path": inventory_path,
            "content": Path(inventory_path).read_text(encoding="utf-8"),
        })
        return RunnerResult(exit_code=self.exit_code, command=["fake-runner", str(inventory_path)])


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def descriptor():
    """Sample provisioned instance."""
    return ResourceDescriptor(
        resource_id="i-1",
        public_address="203.0.113.5",
        private_address="10.0.1.5",
        admin_principal="ubuntu",
        credential_reference="/home/ops/.ssh/todo-app.pem",
        generation="g1",
    )


@pytest.fixture
def params():
    return DeploymentParameters(
        domain="example.test",
        repository_url="https://github.com/example/todo-app.git",
        deploy_principal="deploy",
    )


@pytest.fixture
def transport():
    return FakeTransport(succeed_on=1)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def poller(transport, sleeper):
    return ReadinessPoller(transport=transport, sleep=sleeper)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def inventory_path(tmp_path):
    return tmp_path / "handoff" / "inventory.yml"


@pytest.fixture
def trigger_store(inventory_path):
    return FileTriggerStore.beside(inventory_path)


class RecordingEventEmitter(LoggingEventEmitter):
    """Logging emitter that also keeps what it emitted."""

    def __init__(self):
        self.events: List[ProvisioningEvent] = []

    def emit(self, events):
        events = list(events)
        super().emit(events)
        self.events.extend(events)


@pytest.fixture
def emitter():
    return RecordingEventEmitter()


@pytest.fixture
def coordinator(inventory_path, poller, runner, trigger_store, emitter):
    """Coordinator wired with fakes and file-backed handoff."""
    return ProvisioningCoordinator(
        inventory_path=inventory_path,
        poller=poller,
        runner=runner,
        trigger_store=trigger_store,
        event_emitters=emitter,
    )
