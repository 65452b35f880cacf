# provisioning_engine/orchestrator/coordinator.py
"""Provisioning coordinator - render, wait for SSH, then run Ansible once per trigger."""

import logging
from pathlib import Path
from typing import Optional, Union

from provisioning_engine.core.events_model import ProvisioningEvent
from provisioning_engine.core.events import NullEventEmitter
from provisioning_engine.core.models import (
    CoordinatorRun,
    CoordinatorState,
    DeploymentParameters,
    FailureReason,
    ReadinessPolicy,
    ResourceDescriptor,
    RunOutcome,
    RunTrigger,
)
from provisioning_engine.core.repository import TriggerStore
from provisioning_engine.core.state_machine import CoordinatorStateMachine
from provisioning_engine.inventory.renderer import render, require_field, write_inventory
from provisioning_engine.readiness.poller import ReadinessPoller
from provisioning_engine.runner.ansible import ConfigurationRunner

logger = logging.getLogger(__name__)


class ProvisioningCoordinator:
    """
    Sequences the handoff from the resource provider to the configuration runner.

    Flow:
    1. Render the inventory and write it to the handoff path
    2. Poll the target until it accepts SSH commands
    3. Compute the run trigger from the generation and inventory content
    4. Skip if the trigger matches the persisted one
    5. Otherwise run the configuration runner; persist the trigger on success

    Nothing is retried across invocations. The trigger is persisted only
    after the runner exits 0, so an interrupted run is re-applied next time.
    """

    def __init__(
        self,
        inventory_path: Union[str, Path],
        poller: ReadinessPoller,
        runner: ConfigurationRunner,
        trigger_store: TriggerStore,
        event_emitters=None,
    ):
        self.inventory_path = Path(inventory_path)
        self._poller = poller
        self._runner = runner
        self._store = trigger_store
        self._emitters = event_emitters or NullEventEmitter()

    def run(
        self,
        descriptor: ResourceDescriptor,
        params: DeploymentParameters,
        policy: Optional[ReadinessPolicy] = None,
    ) -> RunOutcome:
        """
        Run one coordinator invocation.

        Args:
            descriptor: Resource to configure
            params: Deployment parameters
            policy: Readiness polling policy

        Returns:
            RunOutcome (APPLIED, SKIPPED or FAILED)

        Raises:
            RenderError: If a required inventory field is absent
        """
        policy = policy or ReadinessPolicy()
        require_field(descriptor.resource_id, "resource_id")
        run = CoordinatorRun(resource_id=descriptor.resource_id, generation=descriptor.generation)
        rid = descriptor.resource_id

        logger.info(f"[{rid}] Provisioning run {run.run_id} (generation {descriptor.generation})")

        try:
            # -------------------------
            # RENDER
            # -------------------------
            self._transition(run, CoordinatorState.RENDERING)
            record = render(descriptor, params)
            write_inventory(record, self.inventory_path)

            # -------------------------
            # POLL
            # -------------------------
            self._transition(run, CoordinatorState.POLLING, address=descriptor.public_address)
            readiness = self._poller.await_ready(
                address=descriptor.public_address,
                principal=descriptor.admin_principal,
                credential=descriptor.credential_reference,
                policy=policy,
            )

            if not readiness.is_ready:
                message = (
                    f"{descriptor.public_address} unreachable after {readiness.attempts} attempts"
                )
                if readiness.last_error:
                    message += f": {readiness.last_error}"
                self._transition(run, CoordinatorState.FAILED, error_message=message)
                return RunOutcome.failed(
                    FailureReason.UNREACHABLE_TARGET,
                    message,
                    attempts=readiness.attempts,
                )

            # -------------------------
            # TRIGGER
            # -------------------------
            trigger = RunTrigger.compute(descriptor, record)
            previous = self._store.load()

            if trigger.matches(previous):
                self._transition(run, CoordinatorState.SKIPPING, trigger=trigger.value)
                logger.info(f"[{rid}] Trigger {trigger.value[:12]} unchanged, skipping configuration run")
                self._transition(run, CoordinatorState.SKIPPED)
                return RunOutcome.skipped(trigger, attempts=readiness.attempts)

            # -------------------------
            # INVOKE
            # -------------------------
            self._transition(run, CoordinatorState.INVOKING, trigger=trigger.value)
            try:
                result = self._runner.run(self.inventory_path)
            except OSError as e:
                message = f"Configuration runner could not start: {e}"
                self._transition(run, CoordinatorState.FAILED, error_message=message)
                return RunOutcome.failed(
                    FailureReason.CONFIGURATION_RUN_FAILED,
                    message,
                    attempts=readiness.attempts,
                    trigger=trigger.value,
                )

            if not result.succeeded:
                message = f"Configuration runner exited with code {result.exit_code}"
                self._transition(run, CoordinatorState.FAILED, error_message=message)
                return RunOutcome.failed(
                    FailureReason.CONFIGURATION_RUN_FAILED,
                    message,
                    attempts=readiness.attempts,
                    exit_code=result.exit_code,
                    trigger=trigger.value,
                )

            self._store.save(trigger)
            self._transition(run, CoordinatorState.APPLIED)
            logger.info(f"[{rid}] ✅ Configuration applied (trigger {trigger.value[:12]})")
            return RunOutcome.applied(trigger, attempts=readiness.attempts)

        except Exception as e:
            if not run.is_terminal():
                try:
                    self._transition(run, CoordinatorState.FAILED, error_message=str(e))
                except Exception as emit_error:
                    logger.error(f"[{rid}] Could not record FAILED state: {emit_error}")
            logger.error(f"[{rid}] ❌ Provisioning run {run.run_id} aborted: {e}")
            raise

    def reset_trigger(self) -> None:
        """Forget the persisted trigger so the next run re-applies."""
        self._store.clear()

    def _transition(self, run: CoordinatorRun, new_state: CoordinatorState, error_message=None, **metadata):
        CoordinatorStateMachine.transition(run, new_state, error_message=error_message)
        if error_message:
            metadata["error_message"] = error_message
        self._emitters.emit([ProvisioningEvent.for_transition(run, **metadata)])
