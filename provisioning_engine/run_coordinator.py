# provisioning_engine/run_coordinator.py
"""Provisioning coordinator entry point."""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from pydantic import ValidationError

from provisioning_engine.config import CoordinatorSettings
from provisioning_engine.container import build_coordinator
from provisioning_engine.core.errors import ProvisioningError
from provisioning_engine.core.models import ResourceDescriptor, RunStatus
from provisioning_engine.provider.terraform import TerraformOutputProvider

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


# Flag destination -> settings field
FLAG_FIELDS = {
    "resource_id": "resource_id",
    "address": "public_address",
    "private_address": "private_address",
    "generation": "generation",
    "terraform_dir": "terraform_dir",
    "user": "ssh_user",
    "key": "ssh_key_path",
    "deploy_user": "deploy_user",
    "domain": "domain_name",
    "repo_url": "repo_url",
    "app_dir": "app_dir",
    "inventory": "inventory_path",
    "trigger_file": "trigger_path",
    "playbook": "playbook_path",
    "max_attempts": "max_attempts",
    "timeout": "per_attempt_timeout",
    "backoff": "backoff_interval",
    "log_level": "log_level",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="provision-coordinator",
        description=(
            "Render the Ansible inventory for a provisioned instance, wait for SSH, "
            "and run the playbook once per instance generation. "
            "Every flag falls back to a PROVISION_* environment variable."
        ),
    )

    resource = parser.add_argument_group("resource")
    resource.add_argument("--terraform-dir", help="Read the instance from `terraform output -json` in this directory")
    resource.add_argument("--resource-id", help="Instance identifier (default: the address)")
    resource.add_argument("--address", help="Public IP or hostname of the instance")
    resource.add_argument("--private-address", help="Private IP of the instance")
    resource.add_argument("--generation", help="Resource generation token (default: the resource id)")
    resource.add_argument("--user", help="SSH admin user (PROVISION_SSH_USER, default ubuntu)")
    resource.add_argument("--key", help="Path to the SSH private key (PROVISION_SSH_KEY_PATH)")

    deploy = parser.add_argument_group("deployment")
    deploy.add_argument("--deploy-user", help="Deploy user created on the host")
    deploy.add_argument("--domain", help="Domain name served by the stack")
    deploy.add_argument("--repo-url", help="Application repository URL")
    deploy.add_argument("--app-dir", help="Working directory on the host")

    handoff = parser.add_argument_group("handoff")
    handoff.add_argument("--inventory", help="Inventory output path (default inventory.yml)")
    handoff.add_argument("--trigger-file", help="Run trigger path (default: beside the inventory)")
    handoff.add_argument("--playbook", help="Playbook to run (default playbook.yml)")
    handoff.add_argument("--force", action="store_true", help="Forget the stored trigger and re-apply")

    policy = parser.add_argument_group("readiness policy")
    policy.add_argument("--max-attempts", type=int, help="SSH attempts before giving up (default 30)")
    policy.add_argument("--timeout", type=float, help="Per-attempt timeout in seconds (default 5)")
    policy.add_argument("--backoff", type=float, help="Seconds between attempts (default 10)")

    parser.add_argument("--log-level", help="Logging level (default INFO)")
    return parser


def load_settings(args: argparse.Namespace) -> CoordinatorSettings:
    """Environment first, explicit flags on top."""
    overrides: Dict[str, object] = {}
    for dest, field_name in FLAG_FIELDS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    return CoordinatorSettings(**overrides)


def resolve_descriptor(settings: CoordinatorSettings) -> ResourceDescriptor:
    """Describe the target from terraform outputs or from explicit settings."""
    credential = settings.ssh_key_path or ""

    if settings.terraform_dir:
        provider = TerraformOutputProvider(
            working_dir=settings.terraform_dir,
            terraform_bin=settings.terraform_bin,
        )
        return provider.describe(
            admin_principal=settings.ssh_user,
            credential_reference=credential,
        )

    if not settings.public_address:
        raise ProvisioningError("an instance address is required (--address or --terraform-dir)")

    resource_id = settings.resource_id or settings.public_address
    return ResourceDescriptor(
        resource_id=resource_id,
        public_address=settings.public_address,
        private_address=settings.private_address,
        admin_principal=settings.ssh_user,
        credential_reference=credential,
        generation=settings.generation or resource_id,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    try:
        descriptor = resolve_descriptor(settings)
        coordinator = build_coordinator(settings)

        if args.force:
            coordinator.reset_trigger()

        logger.info("=" * 80)
        logger.info("🚀 PROVISIONING COORDINATOR")
        logger.info("=" * 80)
        logger.info(f"Resource: {descriptor.resource_id} @ {descriptor.public_address}")
        logger.info(f"Inventory: {settings.inventory_path}")
        logger.info(f"Playbook: {settings.playbook_path}")
        logger.info(
            f"Policy: {settings.max_attempts} attempts, "
            f"{settings.per_attempt_timeout:g}s timeout, {settings.backoff_interval:g}s backoff"
        )

        outcome = coordinator.run(
            descriptor,
            settings.deployment_parameters,
            settings.policy,
        )
    except (ProvisioningError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if outcome.status == RunStatus.FAILED:
        print(f"error: {outcome.reason.value}: {outcome.message}", file=sys.stderr)
        return 1

    print(f"{outcome.status.value}: {outcome.message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
