# provisioning_engine/runner/ansible.py
"""Configuration runner - invokes ansible-playbook against the rendered inventory."""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


@dataclass
class RunnerResult:
    """Result from a configuration run."""
    exit_code: int
    command: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ConfigurationRunner(ABC):
    """Runs the configuration-management step for an inventory."""

    @abstractmethod
    def run(self, inventory_path: Path) -> RunnerResult:
        """
        Run synchronously.

        Only the exit code is observed; the tool's own output goes straight
        to the operator.
        """
        raise NotImplementedError


class AnsibleRunner(ConfigurationRunner):
    """Runs `ansible-playbook -i <inventory> <playbook>`."""

    def __init__(
        self,
        playbook: Union[str, Path],
        ansible_playbook_bin: str = "ansible-playbook",
        extra_args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize runner.

        Args:
            playbook: Playbook to apply
            ansible_playbook_bin: ansible-playbook executable
            extra_args: Additional command-line arguments
            env: Extra environment variables for the child process
        """
        self.playbook = Path(playbook)
        self.ansible_playbook_bin = ansible_playbook_bin
        self.extra_args = list(extra_args or [])
        self.env = dict(env or {})

    def build_command(self, inventory_path: Path) -> List[str]:
        return [
            self.ansible_playbook_bin,
            "-i", str(inventory_path),
            str(self.playbook),
            *self.extra_args,
        ]

    def _child_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.setdefault("ANSIBLE_HOST_KEY_CHECKING", "False")
        env.update(self.env)
        return env

    def run(self, inventory_path: Path) -> RunnerResult:
        cmd = self.build_command(inventory_path)
        logger.info(f"Running: {' '.join(cmd)}")

        # stdout/stderr are inherited so diagnostics reach the operator verbatim
        completed = subprocess.run(cmd, env=self._child_env(), check=False)

        if completed.returncode == 0:
            logger.info("✅ ansible-playbook finished successfully")
        else:
            logger.error(f"❌ ansible-playbook exited with code {completed.returncode}")

        return RunnerResult(exit_code=completed.returncode, command=cmd)
