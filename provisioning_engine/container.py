#provisioning_engine\container.py

"""Dependency wiring - builds the coordinator from settings."""

from provisioning_engine.config import CoordinatorSettings
from provisioning_engine.core.events import LoggingEventEmitter, MultiEventEmitter
from provisioning_engine.infrastructure.file.trigger_store import FileTriggerStore
from provisioning_engine.orchestrator.coordinator import ProvisioningCoordinator
from provisioning_engine.readiness.poller import ReadinessPoller
from provisioning_engine.readiness.transport import SSHProbeTransport
from provisioning_engine.runner.ansible import AnsibleRunner


def build_trigger_store(settings: CoordinatorSettings) -> FileTriggerStore:
    if settings.trigger_path:
        return FileTriggerStore(settings.trigger_path)
    return FileTriggerStore.beside(settings.inventory_path)


def build_coordinator(settings: CoordinatorSettings) -> ProvisioningCoordinator:
    # ============================================
    # READINESS
    # ============================================

    poller = ReadinessPoller(
        transport=SSHProbeTransport(ssh_bin=settings.ssh_bin),
    )

    # ============================================
    # CONFIGURATION RUNNER
    # ============================================

    runner = AnsibleRunner(
        playbook=settings.playbook_path,
        ansible_playbook_bin=settings.ansible_playbook_bin,
        extra_args=settings.ansible_extra_args,
    )

    # ============================================
    # EVENTS
    # ============================================

    emitters = MultiEventEmitter([
        LoggingEventEmitter()
    ])

    return ProvisioningCoordinator(
        inventory_path=settings.inventory_path,
        poller=poller,
        runner=runner,
        trigger_store=build_trigger_store(settings),
        event_emitters=emitters,
    )
