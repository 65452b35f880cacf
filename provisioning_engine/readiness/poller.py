# provisioning_engine/readiness/poller.py
"""Readiness poller - blocks until the target accepts remote commands."""

import logging
import time
from typing import Callable, Optional

from provisioning_engine.core.models import ReadinessOutcome, ReadinessPolicy, ReadinessState
from provisioning_engine.readiness.transport import ProbeTransport, SSHProbeTransport

logger = logging.getLogger(__name__)


class ReadinessPoller:
    """
    Fixed-interval retry loop over a probe transport.

    Architecture:
    - Single-threaded, blocking
    - One probe per attempt, bounded by per_attempt_timeout
    - Fixed backoff between failed attempts (not exponential)
    - Returns READY on the first success, FAILED after max_attempts
    """

    def __init__(
        self,
        transport: Optional[ProbeTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize poller.

        Args:
            transport: Probe transport (defaults to the OpenSSH client)
            sleep: Sleep function, replaceable in tests
        """
        self.transport = transport or SSHProbeTransport()
        self._sleep = sleep

    def await_ready(
        self,
        address: str,
        principal: str,
        credential: str,
        policy: Optional[ReadinessPolicy] = None,
    ) -> ReadinessOutcome:
        """
        Poll the target until it is reachable or attempts run out.

        Args:
            address: Host name or IP of the target
            principal: Login user
            credential: Path to the private key
            policy: Attempts, timeout and backoff

        Returns:
            ReadinessOutcome with the number of attempts made
        """
        policy = policy or ReadinessPolicy()
        state = ReadinessState(max_attempts=policy.max_attempts)

        logger.info(f"[{address}] Waiting for SSH to be ready...")

        while not state.is_finished():
            result = self.transport.probe(
                address=address,
                principal=principal,
                credential=credential,
                timeout=policy.per_attempt_timeout,
            )

            if result.ok:
                state.record_success()
                logger.info(
                    f"[{address}] ✅ SSH connection successful "
                    f"(attempt {state.attempts}/{state.max_attempts})"
                )
                break

            state.record_failure(result.error)

            if state.is_finished():
                break

            logger.info(
                f"[{address}] Attempt {state.attempts}/{state.max_attempts} failed "
                f"({result.error}). Retrying in {policy.backoff_interval:g} seconds..."
            )
            self._sleep(policy.backoff_interval)

        outcome = ReadinessOutcome.from_state(state)
        if not outcome.is_ready:
            logger.error(
                f"[{address}] ❌ Failed to connect via SSH after {outcome.attempts} attempts"
                f" (last error: {outcome.last_error})"
            )
        return outcome
