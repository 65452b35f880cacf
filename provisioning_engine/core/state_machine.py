# provisioning_engine/core/state_machine.py

from datetime import datetime, timezone

from provisioning_engine.core.models import CoordinatorRun, CoordinatorState, TERMINAL_STATES


ALLOWED_TRANSITIONS = {
    CoordinatorState.START: {
        CoordinatorState.RENDERING,
        CoordinatorState.FAILED,
    },
    CoordinatorState.RENDERING: {
        CoordinatorState.POLLING,
        CoordinatorState.FAILED,
    },
    CoordinatorState.POLLING: {
        CoordinatorState.SKIPPING,
        CoordinatorState.INVOKING,
        CoordinatorState.FAILED,
    },
    CoordinatorState.SKIPPING: {
        CoordinatorState.SKIPPED,
        CoordinatorState.FAILED,
    },
    CoordinatorState.INVOKING: {
        CoordinatorState.APPLIED,
        CoordinatorState.FAILED,
    },
}


class InvalidStateTransition(Exception):
    pass


class CoordinatorStateMachine:
    @staticmethod
    def transition(
        run: CoordinatorRun,
        new_state: CoordinatorState,
        *,
        now: datetime | None = None,
        error_message: str | None = None,
    ) -> CoordinatorRun:
        now = now or datetime.now(timezone.utc)

        current = run.state

        allowed = ALLOWED_TRANSITIONS.get(current, set())
        if new_state not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {current.value} to {new_state.value}"
            )

        if new_state in TERMINAL_STATES:
            run.finished_at = now

        if new_state == CoordinatorState.FAILED:
            run.error_message = error_message

        run.state = new_state
        return run
