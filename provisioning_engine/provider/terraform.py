# provisioning_engine/provider/terraform.py
"""Resource provider adapter - reads the instance from `terraform output -json`."""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from provisioning_engine.core.errors import ResourceProviderError
from provisioning_engine.core.models import ResourceDescriptor
from provisioning_engine.core.schemas import TerraformOutputs

logger = logging.getLogger(__name__)


DEFAULT_OUTPUT_NAMES = {
    "resource_id": "instance_id",
    "public_address": "public_ip",
    "private_address": "private_ip",
    "generation": "generation",
}


def descriptor_from_outputs(
    outputs: Dict[str, Any],
    admin_principal: str,
    credential_reference: str,
    output_names: Optional[Dict[str, str]] = None,
) -> ResourceDescriptor:
    """
    Map terraform outputs onto a ResourceDescriptor.

    The generation defaults to the instance id, which changes whenever
    terraform replaces the instance.

    Raises:
        ResourceProviderError: If the payload is malformed or a required output is missing
    """
    names = {**DEFAULT_OUTPUT_NAMES, **(output_names or {})}

    try:
        parsed = TerraformOutputs.model_validate({"outputs": outputs})
    except ValidationError as e:
        raise ResourceProviderError(f"Malformed terraform outputs: {e}") from e

    def _value(field_name: str) -> Optional[str]:
        value = parsed.get_value(names[field_name])
        return None if value is None else str(value)

    resource_id = _value("resource_id")
    public_address = _value("public_address")

    missing = [
        names[f] for f, v in (("resource_id", resource_id), ("public_address", public_address))
        if not v
    ]
    if missing:
        raise ResourceProviderError(f"Missing terraform outputs: {', '.join(missing)}")

    return ResourceDescriptor(
        resource_id=resource_id,
        public_address=public_address,
        private_address=_value("private_address"),
        admin_principal=admin_principal,
        credential_reference=credential_reference,
        generation=_value("generation") or resource_id,
    )


class TerraformOutputProvider:
    """Reads the provisioned instance from a terraform working directory."""

    def __init__(
        self,
        working_dir: Union[str, Path],
        terraform_bin: str = "terraform",
        output_names: Optional[Dict[str, str]] = None,
    ):
        self.working_dir = Path(working_dir)
        self.terraform_bin = terraform_bin
        self.output_names = output_names

    def read_outputs(self) -> Dict[str, Any]:
        cmd = [self.terraform_bin, f"-chdir={self.working_dir}", "output", "-json"]
        logger.info(f"Reading terraform outputs from {self.working_dir}")

        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ResourceProviderError(f"terraform executable not found: {self.terraform_bin}") from e

        if completed.returncode != 0:
            raise ResourceProviderError(
                f"terraform output failed (exit {completed.returncode}): {completed.stderr.strip()}"
            )

        try:
            payload = json.loads(completed.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ResourceProviderError(f"terraform output is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise ResourceProviderError("terraform output must be a JSON object")

        return payload

    def describe(self, admin_principal: str, credential_reference: str) -> ResourceDescriptor:
        """Return the descriptor of the instance terraform created."""
        descriptor = descriptor_from_outputs(
            self.read_outputs(),
            admin_principal=admin_principal,
            credential_reference=credential_reference,
            output_names=self.output_names,
        )
        logger.info(
            f"[{descriptor.resource_id}] Resource at {descriptor.public_address} "
            f"(generation {descriptor.generation})"
        )
        return descriptor
