"""SubmissionStateMachine class with trigger, lock check, and history."""

from __future__ import annotations

from emailagent.domain.errors import InvalidTransitionError
from emailagent.submission.transitions import LOCKED_PHASES, TRANSITIONS, SubmissionPhase


class SubmissionStateMachine:
    """Finite state machine governing one submission at a time.

    The machine cycles back to ``IDLE`` after every submission, so there are
    no terminal phases.  History is kept for the page session.

    Usage::

        sm = SubmissionStateMachine()
        sm.trigger("submit")    # -> VALIDATING
        sm.trigger("lock")      # -> IN_FLIGHT
        sm.trigger("succeed")   # -> RECONCILING_SUCCESS
        sm.trigger("release")   # -> IDLE
    """

    def __init__(self, initial_state: SubmissionPhase = SubmissionPhase.IDLE) -> None:
        self._state: SubmissionPhase = initial_state
        self._history: list[tuple[SubmissionPhase, str, SubmissionPhase]] = []

    @property
    def state(self) -> SubmissionPhase:
        """Return the current phase."""
        return self._state

    @property
    def is_locked(self) -> bool:
        """Return True while a submission holds the in-flight lock."""
        return self._state in LOCKED_PHASES

    @property
    def history(self) -> list[tuple[SubmissionPhase, str, SubmissionPhase]]:
        """Return a copy of the ``(from_state, event, to_state)`` history."""
        return list(self._history)

    def trigger(self, event: str) -> SubmissionPhase:
        """Apply an event to the current phase and transition.

        Args:
            event: The event string (e.g. ``"lock"``).

        Returns:
            The new phase after the transition.

        Raises:
            InvalidTransitionError: If the transition is not allowed from
                the current phase.
        """
        key = (self._state, event)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(self._state, event)

        old_state = self._state
        new_state = TRANSITIONS[key]
        self._history.append((old_state, event, new_state))
        self._state = new_state
        return new_state

