"""Quick verification script."""

import shutil
import sys
import tempfile
from pathlib import Path

from provisioning_engine.config import CoordinatorSettings
from provisioning_engine.core.models import DeploymentParameters, ResourceDescriptor, RunTrigger
from provisioning_engine.infrastructure.file.trigger_store import FileTriggerStore
from provisioning_engine.inventory.renderer import render, write_inventory


def main():
    print("🔍 Verifying Provisioning Coordinator Setup...")
    print()

    # 1. Settings
    print("✓ Loading settings...")
    settings = CoordinatorSettings()
    print(f"  SSH user: {settings.ssh_user}")
    print(f"  Inventory: {settings.inventory_path}")
    print(f"  Playbook: {settings.playbook_path}")
    print(f"  Policy: {settings.policy}")
    print()

    # 2. Executables
    print("✓ Checking executables...")
    missing = []
    for name in (settings.ssh_bin, settings.ansible_playbook_bin, settings.terraform_bin):
        location = shutil.which(name)
        if location:
            print(f"  {name}: {location}")
        else:
            print(f"  {name}: NOT FOUND")
            missing.append(name)
    print()

    # 3. Render + trigger round trip in a scratch directory
    print("✓ Testing inventory render and trigger store...")
    descriptor = ResourceDescriptor(
        resource_id="i-verify",
        public_address="203.0.113.10",
        admin_principal=settings.ssh_user,
        credential_reference="~/.ssh/id_rsa",
        generation="verify",
    )
    params = DeploymentParameters(
        domain="example.test",
        repository_url="https://example.test/app.git",
    )

    with tempfile.TemporaryDirectory() as tmp:
        inventory_path = Path(tmp) / "inventory.yml"
        record = render(descriptor, params)
        write_inventory(record, inventory_path)
        assert inventory_path.read_text(encoding="utf-8") == record.content

        store = FileTriggerStore.beside(inventory_path)
        trigger = RunTrigger.compute(descriptor, record)
        store.save(trigger)
        assert trigger.matches(store.load())
        print(f"  Inventory sha256: {record.sha256[:12]}")
        print(f"  Trigger: {trigger.value[:12]}")
    print()

    if missing:
        print(f"⚠️  Missing executables: {', '.join(missing)}")
        sys.exit(1)

    print("🎉 ALL VERIFICATIONS PASSED!")
    print()


if __name__ == "__main__":
    main()
