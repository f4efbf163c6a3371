"""Transition map defining all valid (phase, event) -> phase mappings."""

from enum import StrEnum


class SubmissionPhase(StrEnum):
    """Phases a single submission passes through."""

    IDLE = "idle"
    VALIDATING = "validating"
    IN_FLIGHT = "in_flight"
    RECONCILING_SUCCESS = "reconciling_success"
    RECONCILING_FAILURE = "reconciling_failure"


class SubmissionEvent(StrEnum):
    """Events that move a submission between phases."""

    SUBMIT = "submit"
    REJECT = "reject"
    LOCK = "lock"
    SUCCEED = "succeed"
    FAIL = "fail"
    RELEASE = "release"


# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[SubmissionPhase, str], SubmissionPhase] = {
    (SubmissionPhase.IDLE, SubmissionEvent.SUBMIT): SubmissionPhase.VALIDATING,
    (SubmissionPhase.VALIDATING, SubmissionEvent.REJECT): SubmissionPhase.IDLE,
    (SubmissionPhase.VALIDATING, SubmissionEvent.LOCK): SubmissionPhase.IN_FLIGHT,
    (SubmissionPhase.IN_FLIGHT, SubmissionEvent.SUCCEED): SubmissionPhase.RECONCILING_SUCCESS,
    (SubmissionPhase.IN_FLIGHT, SubmissionEvent.FAIL): SubmissionPhase.RECONCILING_FAILURE,
    (SubmissionPhase.RECONCILING_SUCCESS, SubmissionEvent.RELEASE): SubmissionPhase.IDLE,
    (SubmissionPhase.RECONCILING_FAILURE, SubmissionEvent.RELEASE): SubmissionPhase.IDLE,
}

# Phases during which the in-flight lock is held.
LOCKED_PHASES: frozenset[SubmissionPhase] = frozenset(
    {
        SubmissionPhase.IN_FLIGHT,
        SubmissionPhase.RECONCILING_SUCCESS,
        SubmissionPhase.RECONCILING_FAILURE,
    }
)
