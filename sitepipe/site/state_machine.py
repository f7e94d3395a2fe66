"""Build lifecycle state machine implementation."""

from enum import Enum, auto
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class BuildState(Enum):
    """Build lifecycle states.

    State transitions:
        PENDING -> RESETTING: Begin clearing the output directory
        RESETTING -> RUNNING_COMMANDS: Output directory recreated empty
        RUNNING_COMMANDS -> COPYING_ASSETS: All commands exited zero
        COPYING_ASSETS -> COPYING_PUBLIC: Asset table populated
        COPYING_PUBLIC -> RENDERING: Public files mirrored
        RENDERING -> DONE: Every renderer ran (failures are isolated)
        Any non-terminal -> FAILED: A fatal phase failed
    """

    PENDING = auto()
    RESETTING = auto()
    RUNNING_COMMANDS = auto()
    COPYING_ASSETS = auto()
    COPYING_PUBLIC = auto()
    RENDERING = auto()
    DONE = auto()
    FAILED = auto()


class BuildStateError(Exception):
    """Raised when an invalid build state transition is attempted."""

    def __init__(self, from_state: BuildState, to_state: BuildState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid build state transition: {from_state.name} -> {to_state.name}"
        )


class BuildStateMachine:
    """State machine for the build lifecycle.

    Enforces the strict phase order of a build. There are no retries and no
    branches: each phase either hands over to the next one or fails the
    build.
    """

    VALID_TRANSITIONS: ClassVar[dict[BuildState, set[BuildState]]] = {
        BuildState.PENDING: {BuildState.RESETTING, BuildState.FAILED},
        BuildState.RESETTING: {BuildState.RUNNING_COMMANDS, BuildState.FAILED},
        BuildState.RUNNING_COMMANDS: {BuildState.COPYING_ASSETS, BuildState.FAILED},
        BuildState.COPYING_ASSETS: {BuildState.COPYING_PUBLIC, BuildState.FAILED},
        BuildState.COPYING_PUBLIC: {BuildState.RENDERING, BuildState.FAILED},
        BuildState.RENDERING: {BuildState.DONE, BuildState.FAILED},
        BuildState.DONE: set(),  # Terminal state
        BuildState.FAILED: set(),  # Terminal state
    }

    def __init__(self, build_id: str) -> None:
        """Initialize the state machine in PENDING state.

        Args:
            build_id: Unique build identifier for logging.
        """
        self._state = BuildState.PENDING
        self._log = logger.bind(build_id=build_id, component="build")

    @property
    def state(self) -> BuildState:
        """Get the current state."""
        return self._state

    def can_transition(self, to_state: BuildState) -> bool:
        """Check if a transition to the given state is valid.

        Args:
            to_state: The target state.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: BuildState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            BuildStateError: If the transition is invalid.
        """
        if not self.can_transition(to_state):
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise BuildStateError(self._state, to_state)

        old_state = self._state
        self._state = to_state
        self._log.debug(
            "build_state_transition",
            from_state=old_state.name,
            to_state=to_state.name,
        )

    def to_resetting(self) -> None:
        """Transition to RESETTING state."""
        self.transition(BuildState.RESETTING)

    def to_running_commands(self) -> None:
        """Transition to RUNNING_COMMANDS state."""
        self.transition(BuildState.RUNNING_COMMANDS)

    def to_copying_assets(self) -> None:
        """Transition to COPYING_ASSETS state."""
        self.transition(BuildState.COPYING_ASSETS)

    def to_copying_public(self) -> None:
        """Transition to COPYING_PUBLIC state."""
        self.transition(BuildState.COPYING_PUBLIC)

    def to_rendering(self) -> None:
        """Transition to RENDERING state."""
        self.transition(BuildState.RENDERING)

    def to_done(self) -> None:
        """Transition to DONE state."""
        self.transition(BuildState.DONE)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition(BuildState.FAILED)
