from __future__ import annotations

from enum import Enum


class RunState(str, Enum):
    CHECKING_TOOLS = "CHECKING_TOOLS"
    CHECKING_DEVICES = "CHECKING_DEVICES"
    REMOVING_STALE_MODULE = "REMOVING_STALE_MODULE"
    CREATING_MODULE = "CREATING_MODULE"
    LINKING = "LINKING"
    DONE = "DONE"
    ABORTED = "ABORTED"


TERMINAL_STATES = frozenset({RunState.DONE, RunState.ABORTED})

VALID_TRANSITIONS = {
    RunState.CHECKING_TOOLS: {RunState.CHECKING_DEVICES, RunState.REMOVING_STALE_MODULE, RunState.ABORTED},
    RunState.CHECKING_DEVICES: {RunState.REMOVING_STALE_MODULE, RunState.DONE, RunState.ABORTED},
    RunState.REMOVING_STALE_MODULE: {RunState.CREATING_MODULE, RunState.DONE, RunState.ABORTED},
    RunState.CREATING_MODULE: {RunState.LINKING, RunState.ABORTED},
    RunState.LINKING: {RunState.DONE, RunState.ABORTED},
    RunState.DONE: set(),
    RunState.ABORTED: set(),
}


class InvalidTransitionError(ValueError):
    pass


class RunStateTracker:
    """Single-run state machine; every run starts in CHECKING_TOOLS."""

    def __init__(self) -> None:
        self._state = RunState.CHECKING_TOOLS
        self._history: list[RunState] = [RunState.CHECKING_TOOLS]

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def history(self) -> list[RunState]:
        return list(self._history)

    def transition(self, next_state: RunState) -> None:
        current = self._state
        if next_state not in VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(f"invalid run transition {current.value} -> {next_state.value}")
        self._state = next_state
        self._history.append(next_state)

    def abort(self) -> None:
        if self._state in TERMINAL_STATES:
            return
        self.transition(RunState.ABORTED)
