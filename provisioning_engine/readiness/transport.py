# provisioning_engine/readiness/transport.py
"""Probe transports used by the readiness poller."""

import math
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


READY_COMMAND = "echo 'SSH is ready'"


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe attempt."""
    ok: bool
    error: Optional[str] = None


class ProbeTransport(ABC):
    """Executes one authenticated command against a target."""

    @abstractmethod
    def probe(
        self,
        address: str,
        principal: str,
        credential: str,
        timeout: float,
    ) -> ProbeResult:
        """
        Run a single probe.

        Connection failures, timeouts and auth failures are reported as a
        failed ProbeResult. A missing client executable raises.
        """
        raise NotImplementedError


class SSHProbeTransport(ProbeTransport):
    """Probe through the OpenSSH client."""

    def __init__(self, ssh_bin: str = "ssh", command: str = READY_COMMAND):
        self.ssh_bin = ssh_bin
        self.command = command

    def build_command(
        self,
        address: str,
        principal: str,
        credential: str,
        timeout: float,
    ) -> List[str]:
        return [
            self.ssh_bin,
            "-i", credential,
            "-o", "StrictHostKeyChecking=no",
            "-o", "UserKnownHostsFile=/dev/null",
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={max(1, math.ceil(timeout))}",
            f"{principal}@{address}",
            self.command,
        ]

    def probe(
        self,
        address: str,
        principal: str,
        credential: str,
        timeout: float,
    ) -> ProbeResult:
        cmd = self.build_command(address, principal, credential, timeout)

        try:
            # whole attempt, handshake included, is bounded by timeout
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return ProbeResult(ok=False, error=f"timed out after {timeout:g}s")

        if completed.returncode == 0:
            return ProbeResult(ok=True)

        stderr = (completed.stderr or "").strip().splitlines()
        detail = stderr[-1] if stderr else f"exit code {completed.returncode}"
        return ProbeResult(ok=False, error=detail)
