"""Upload lifecycle state machine.

Tracks one chunked upload through INIT, APPEND and FINALIZE and enforces
valid transitions, so a phase can never be issued out of order.
"""

from __future__ import annotations

from tweetify.errors import TweetifySequencingError
from tweetify.models import UploadState


class UploadStateMachine:
    """Finite state machine for a single chunked upload.

    Valid transitions::

        IDLE        -> INITIATING | FAILED
        INITIATING  -> APPENDING  | FAILED
        APPENDING   -> FINALIZING | FAILED
        FINALIZING  -> COMPLETED  | FAILED
        COMPLETED   -> (terminal)
        FAILED      -> (terminal)

    Parameters
    ----------
    label:
        Identifier used in error messages (the media handle once known).
    """

    VALID_TRANSITIONS: dict[UploadState, set[UploadState]] = {
        UploadState.IDLE: {UploadState.INITIATING, UploadState.FAILED},
        UploadState.INITIATING: {UploadState.APPENDING, UploadState.FAILED},
        UploadState.APPENDING: {UploadState.FINALIZING, UploadState.FAILED},
        UploadState.FINALIZING: {UploadState.COMPLETED, UploadState.FAILED},
        UploadState.COMPLETED: set(),
        UploadState.FAILED: set(),
    }

    TERMINAL_STATES: frozenset[UploadState] = frozenset(
        {UploadState.COMPLETED, UploadState.FAILED}
    )

    def __init__(self, label: str = "<pending>") -> None:
        self.label: str = label
        self.state: UploadState = UploadState.IDLE
        self.history: list[UploadState] = [UploadState.IDLE]

    @property
    def is_terminal(self) -> bool:
        return self.state in self.TERMINAL_STATES

    def transition(self, new_state: UploadState) -> None:
        """Attempt to transition to *new_state*.

        Raises
        ------
        TweetifySequencingError
            If the transition from the current state to *new_state* is
            not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())

        if new_state not in allowed:
            raise TweetifySequencingError(
                message=(
                    f"Invalid state transition: {self.state.value} -> {new_state.value} "
                    f"for upload {self.label}. "
                    f"Allowed transitions from {self.state.value}: "
                    f"{{{', '.join(sorted(s.value for s in allowed))}}}"
                ),
                context={
                    "upload": self.label,
                    "current_state": self.state.value,
                    "requested_state": new_state.value,
                },
            )

        self.state = new_state
        self.history.append(new_state)

    def require(self, expected: UploadState) -> None:
        """Assert that the machine is in *expected* before a wire call.

        Raises
        ------
        TweetifySequencingError
            If the current state differs.
        """
        if self.state != expected:
            raise TweetifySequencingError(
                message=(
                    f"Upload {self.label} is {self.state.value}; "
                    f"operation requires {expected.value}"
                ),
                context={
                    "upload": self.label,
                    "current_state": self.state.value,
                    "requested_state": expected.value,
                },
            )

    def fail(self) -> None:
        """Move to ``FAILED`` unless the machine already reached a terminal state."""
        if not self.is_terminal:
            self.transition(UploadState.FAILED)
