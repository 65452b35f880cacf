# provisioning_engine/inventory/renderer.py
"""
Inventory Renderer - turns a resource descriptor into an Ansible inventory.

The rendered document is a pure function of its inputs: keys are sorted and
the YAML emitter quotes every value that needs it, so identical inputs always
give byte-identical output.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from provisioning_engine.core.errors import RenderError
from provisioning_engine.core.models import DeploymentParameters, InventoryRecord, ResourceDescriptor
from provisioning_engine.infrastructure.file.atomic import atomic_write_text

logger = logging.getLogger(__name__)


SSH_COMMON_ARGS = "-o StrictHostKeyChecking=no"


def require_field(value: Any, name: str) -> Any:
    """Absent means None or empty string; anything else passes through."""
    if value is None or value == "":
        raise RenderError(f"{name} is required")
    return value


def build_inventory(descriptor: ResourceDescriptor, params: DeploymentParameters) -> Dict[str, Any]:
    """
    Build the inventory mapping.

    Args:
        descriptor: Resource reported by the provider
        params: Deployment parameters

    Returns:
        Nested mapping in Ansible's YAML inventory layout

    Raises:
        RenderError: If a required field is absent
    """
    # -------------------------
    # Host
    # -------------------------
    host_vars = {
        "ansible_host": require_field(descriptor.public_address, "public_address"),
        "ansible_user": require_field(descriptor.admin_principal, "admin_principal"),
        "ansible_ssh_private_key_file": require_field(
            descriptor.credential_reference, "credential_reference"
        ),
    }
    if descriptor.private_address:
        host_vars["private_ip"] = descriptor.private_address

    host_name = require_field(descriptor.resource_id, "resource_id")

    # -------------------------
    # Deployment
    # -------------------------
    deploy_user = require_field(params.deploy_principal, "deploy_principal")
    group_vars = {
        "ansible_ssh_common_args": SSH_COMMON_ARGS,
        "deploy_user": deploy_user,
        "domain_name": require_field(params.domain, "domain"),
        "repo_url": require_field(params.repository_url, "repository_url"),
        "app_dir": params.resolved_working_directory(),
    }

    return {
        "all": {
            "hosts": {host_name: host_vars},
            "vars": group_vars,
        }
    }


def render(descriptor: ResourceDescriptor, params: DeploymentParameters) -> InventoryRecord:
    """Render the inventory document for the configuration runner."""
    inventory = build_inventory(descriptor, params)
    content = yaml.safe_dump(
        inventory,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        width=4096,
    )
    return InventoryRecord(content=content)


def write_inventory(record: InventoryRecord, path: Union[str, Path]) -> Path:
    """Write the inventory to the handoff location (idempotent overwrite)."""
    target = atomic_write_text(path, record.content)
    logger.info(f"Inventory written to {target} (sha256 {record.sha256[:12]})")
    return target
