"""Submission of instructions to the automation service."""

from emailagent.submission.client import AgentClient
from emailagent.submission.controller import SubmissionController, optimistic_steps
from emailagent.submission.machine import SubmissionStateMachine
from emailagent.submission.transitions import (
    LOCKED_PHASES,
    TRANSITIONS,
    SubmissionEvent,
    SubmissionPhase,
)

__all__ = [
    "LOCKED_PHASES",
    "TRANSITIONS",
    "AgentClient",
    "SubmissionController",
    "SubmissionEvent",
    "SubmissionPhase",
    "SubmissionStateMachine",
    "optimistic_steps",
]
