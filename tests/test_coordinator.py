#tests\test_coordinator.py

"""Test provisioning coordinator sequencing and idempotency."""

from dataclasses import replace

import pytest
import yaml

from provisioning_engine.core.errors import RenderError
from provisioning_engine.core.events import EventEmitter
from provisioning_engine.core.models import (
    DeploymentParameters,
    FailureReason,
    ReadinessPolicy,
    ResourceDescriptor,
    RunStatus,
)
from provisioning_engine.infrastructure.file.trigger_store import FileTriggerStore
from provisioning_engine.orchestrator.coordinator import ProvisioningCoordinator
from provisioning_engine.readiness.poller import ReadinessPoller


POLICY = ReadinessPolicy(max_attempts=5, per_attempt_timeout=1.0, backoff_interval=10.0)


def _event_types(emitter):
    return [event.event_type for event in emitter.events]


class TestCoordinatorRun:

    def test_first_run_applies(self, coordinator, descriptor, params, runner, trigger_store, inventory_path, emitter):
        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.APPLIED
        assert outcome.succeeded
        assert len(runner.invocations) == 1
        assert runner.invocations[0]["inventory_path"] == inventory_path
        assert trigger_store.load().value == outcome.trigger
        assert _event_types(emitter) == [
            "coordinator.rendering",
            "coordinator.polling",
            "coordinator.invoking",
            "coordinator.applied",
        ]

    def test_runner_sees_complete_inventory(self, coordinator, descriptor, params, runner, inventory_path):
        coordinator.run(descriptor, params, POLICY)

        assert runner.invocations[0]["content"] == inventory_path.read_text(encoding="utf-8")

    def test_second_identical_run_skips(self, coordinator, descriptor, params, runner, emitter):
        first = coordinator.run(descriptor, params, POLICY)
        emitter.events.clear()
        second = coordinator.run(descriptor, params, POLICY)

        assert first.status == RunStatus.APPLIED
        assert second.status == RunStatus.SKIPPED
        assert second.trigger == first.trigger
        assert len(runner.invocations) == 1
        assert _event_types(emitter) == [
            "coordinator.rendering",
            "coordinator.polling",
            "coordinator.skipping",
            "coordinator.skipped",
        ]

    def test_changed_domain_reapplies(self, coordinator, descriptor, params, runner):
        first = coordinator.run(descriptor, params, POLICY)
        second = coordinator.run(descriptor, replace(params, domain="other.test"), POLICY)

        assert first.status == RunStatus.APPLIED
        assert second.status == RunStatus.APPLIED
        assert first.trigger != second.trigger
        assert len(runner.invocations) == 2

    def test_changed_generation_reapplies(self, coordinator, descriptor, params, runner):
        coordinator.run(descriptor, params, POLICY)
        outcome = coordinator.run(replace(descriptor, generation="g2"), params, POLICY)

        assert outcome.status == RunStatus.APPLIED
        assert len(runner.invocations) == 2

    def test_unreachable_target_does_not_invoke_runner(
        self, coordinator, descriptor, params, transport, runner, trigger_store, inventory_path, emitter
    ):
        transport.reset(succeed_on=None)

        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.FAILED
        assert outcome.reason == FailureReason.UNREACHABLE_TARGET
        assert outcome.attempts == 5
        assert "203.0.113.5" in outcome.message
        assert runner.invocations == []
        assert trigger_store.load() is None
        # inventory is still handed off before polling
        assert inventory_path.exists()
        assert _event_types(emitter)[-1] == "coordinator.failed"

    def test_runner_failure_keeps_trigger_unset(self, coordinator, descriptor, params, runner, trigger_store):
        runner.exit_code = 2

        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.FAILED
        assert outcome.reason == FailureReason.CONFIGURATION_RUN_FAILED
        assert outcome.exit_code == 2
        assert "code 2" in outcome.message
        assert trigger_store.load() is None

    def test_failed_run_is_retried_in_full_next_time(self, coordinator, descriptor, params, runner):
        runner.exit_code = 1
        coordinator.run(descriptor, params, POLICY)

        runner.exit_code = 0
        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.APPLIED
        assert len(runner.invocations) == 2

    def test_runner_that_cannot_start(self, coordinator, descriptor, params, runner, trigger_store, monkeypatch):
        def missing(inventory_path):
            raise FileNotFoundError("ansible-playbook")

        monkeypatch.setattr(runner, "run", missing)

        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.FAILED
        assert outcome.reason == FailureReason.CONFIGURATION_RUN_FAILED
        assert trigger_store.load() is None

    def test_render_error_raised_before_polling(self, coordinator, descriptor, transport, runner, inventory_path, emitter):
        params = DeploymentParameters(domain=None, repository_url="https://example.test/app.git")

        with pytest.raises(RenderError, match="domain"):
            coordinator.run(descriptor, params, POLICY)

        assert transport.calls == []
        assert runner.invocations == []
        assert not inventory_path.exists()
        assert _event_types(emitter) == ["coordinator.rendering", "coordinator.failed"]

    def test_blank_resource_id_raises_render_error(
        self, coordinator, descriptor, params, transport, runner, inventory_path, emitter
    ):
        with pytest.raises(RenderError, match="resource_id"):
            coordinator.run(replace(descriptor, resource_id=""), params, POLICY)

        assert transport.calls == []
        assert runner.invocations == []
        assert not inventory_path.exists()
        assert emitter.events == []

    def test_failed_emit_does_not_mask_original_error(
        self, inventory_path, poller, runner, trigger_store, descriptor
    ):
        class FailingOnFailedEmitter(EventEmitter):
            def emit(self, events):
                for event in events:
                    if event.event_type == "coordinator.failed":
                        raise RuntimeError("event sink down")

        coordinator = ProvisioningCoordinator(
            inventory_path=inventory_path,
            poller=poller,
            runner=runner,
            trigger_store=trigger_store,
            event_emitters=FailingOnFailedEmitter(),
        )
        params = DeploymentParameters(domain=None, repository_url="https://example.test/app.git")

        with pytest.raises(RenderError, match="domain"):
            coordinator.run(descriptor, params, POLICY)

    def test_reset_trigger_forces_reapply(self, coordinator, descriptor, params, runner):
        coordinator.run(descriptor, params, POLICY)
        coordinator.reset_trigger()

        outcome = coordinator.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.APPLIED
        assert len(runner.invocations) == 2


class TestInterruptedRun:

    def test_crash_between_runner_and_persist_reapplies(
        self, inventory_path, poller, runner, descriptor, params, monkeypatch
    ):
        store = FileTriggerStore.beside(inventory_path)
        coordinator = ProvisioningCoordinator(
            inventory_path=inventory_path,
            poller=poller,
            runner=runner,
            trigger_store=store,
        )

        def killed(trigger):
            raise KeyboardInterrupt()

        monkeypatch.setattr(store, "save", killed)
        with pytest.raises(KeyboardInterrupt):
            coordinator.run(descriptor, params, POLICY)
        monkeypatch.undo()

        assert len(runner.invocations) == 1
        assert store.load() is None

        # fresh process, same handoff directory
        restarted = ProvisioningCoordinator(
            inventory_path=inventory_path,
            poller=poller,
            runner=runner,
            trigger_store=FileTriggerStore.beside(inventory_path),
        )
        outcome = restarted.run(descriptor, params, POLICY)

        assert outcome.status == RunStatus.APPLIED
        assert len(runner.invocations) == 2


class TestEndToEnd:

    def test_apply_skip_reapply(self, inventory_path, transport, sleeper, runner):
        descriptor = ResourceDescriptor(
            resource_id="i-1",
            public_address="203.0.113.5",
            admin_principal="ubuntu",
            credential_reference="/keys/todo.pem",
            generation="g1",
        )
        params = DeploymentParameters(
            domain="example.test",
            repository_url="https://github.com/example/todo-app.git",
        )
        coordinator = ProvisioningCoordinator(
            inventory_path=inventory_path,
            poller=ReadinessPoller(transport=transport, sleep=sleeper),
            runner=runner,
            trigger_store=FileTriggerStore.beside(inventory_path),
        )

        # 1. reachable on the third probe, runner invoked
        transport.reset(succeed_on=3)
        first = coordinator.run(descriptor, params)

        content = inventory_path.read_text(encoding="utf-8")
        assert "203.0.113.5" in content
        assert "example.test" in content
        assert yaml.safe_load(content)["all"]["vars"]["domain_name"] == "example.test"
        assert first.status == RunStatus.APPLIED
        assert first.attempts == 3
        assert len(transport.calls) == 3
        assert sleeper.calls == [10.0, 10.0]
        assert len(runner.invocations) == 1

        # 2. identical inputs, runner not invoked
        transport.reset(succeed_on=1)
        second = coordinator.run(descriptor, params)

        assert second.status == RunStatus.SKIPPED
        assert len(runner.invocations) == 1

        # 3. replaced resource
        third = coordinator.run(replace(descriptor, generation="g2"), params)

        assert third.status == RunStatus.APPLIED
        assert len(runner.invocations) == 2
