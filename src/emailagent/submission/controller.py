"""Serialized submission of user instructions to the automation service.

``SubmissionController`` owns the single ``SubmissionState`` and the in-flight
lock.  Each ``submit`` walks the phase machine::

    idle -> validating -> in_flight -> reconciling_{success,failure} -> idle

An optimistic four-stage snapshot is published before the network round
trip so the timeline moves immediately.  The service's answer then replaces
it wholesale; on a transport failure the snapshot stays.  The lock is
released last, after every other field has its final value.

A second ``submit`` while one is in flight is dropped, not queued.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from emailagent.domain.errors import (
    GENERIC_UNEXPECTED_FAILURE,
    AgentRequestError,
    AgentTransportError,
)
from emailagent.domain.models import (
    AgentRunRequest,
    AuthPayload,
    RenderStep,
    SubmissionState,
    WorkflowStep,
)
from emailagent.domain.types import STATUS_LABEL, StepKey, WorkflowStatus
from emailagent.events import EventChannel, Subscription
from emailagent.submission.client import AgentClient
from emailagent.submission.machine import SubmissionStateMachine
from emailagent.submission.transitions import SubmissionEvent, SubmissionPhase
from emailagent.workflow.reconciler import reconcile_steps

logger = structlog.get_logger()

INSTRUCTION_RECEIVED = "Instruction received."


def optimistic_steps() -> list[WorkflowStep]:
    """Return the step list shown while the request is in flight."""
    return [
        WorkflowStep(
            name=StepKey.INPUT, status=WorkflowStatus.COMPLETED, detail=INSTRUCTION_RECEIVED
        ),
        WorkflowStep(name=StepKey.PROCESSING, status=WorkflowStatus.IN_PROGRESS),
        WorkflowStep(name=StepKey.SENDING, status=WorkflowStatus.IDLE),
        WorkflowStep(name=StepKey.COMPLETED, status=WorkflowStatus.IDLE),
    ]


class SubmissionController:
    """Drive one submission at a time and fold the result into the page state.

    Args:
        client: Client for the remote automation endpoint.
        identity_source: Returns a snapshot of the current identity (or
            ``None``); read once per submission and never mutated.
    """

    def __init__(
        self,
        client: AgentClient,
        identity_source: Callable[[], AuthPayload | None] = lambda: None,
    ) -> None:
        self._client = client
        self._identity_source = identity_source
        self._machine = SubmissionStateMachine()
        self._state = SubmissionState()
        self._changes: EventChannel[SubmissionState] = EventChannel(name="submission")

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SubmissionState:
        """Return a copy of the current submission state."""
        return self._state.model_copy(deep=True)

    @property
    def phase(self) -> SubmissionPhase:
        return self._machine.state

    @property
    def render_steps(self) -> list[RenderStep]:
        """Return the four stages to display for the current step list."""
        return reconcile_steps(self._state.steps)

    @property
    def status_label(self) -> str:
        return STATUS_LABEL[self._state.current_status]

    @property
    def can_submit(self) -> bool:
        """Return True when the submit button would be enabled."""
        return not self._machine.is_locked and bool(self._state.instruction.strip())

    def subscribe(self, listener: Callable[[SubmissionState], None]) -> Subscription:
        """Receive a state copy after every published change."""
        return self._changes.subscribe(listener)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def set_instruction(self, text: str) -> None:
        """Replace the instruction text held by the input field."""
        self._state.instruction = text
        self._publish()

    async def handle_key(self, key: str) -> None:
        """Submit on Enter; other keys are ignored."""
        if key == "Enter":
            await self.submit()

    async def submit(self, instruction: str | None = None) -> SubmissionState:
        """Send an instruction to the service and reconcile the outcome.

        Args:
            instruction: Text to submit.  Defaults to the held instruction.

        Returns:
            A copy of the state after the submission finished (or after it
            was rejected).
        """
        text = self._state.instruction if instruction is None else instruction

        if self._machine.state != SubmissionPhase.IDLE:
            logger.info("Submission dropped", reason="in_flight")
            return self.state

        self._machine.trigger(SubmissionEvent.SUBMIT)
        if not text.strip():
            self._machine.trigger(SubmissionEvent.REJECT)
            logger.debug("Submission dropped", reason="empty_instruction")
            return self.state

        self._lock(text)
        identity = self._identity_source()
        request = AgentRunRequest(
            instruction=text,
            user_email=identity.email if identity else None,
            user_name=identity.name if identity else None,
        )

        try:
            response = await self._client.run(request)
        except AgentRequestError as exc:
            self._machine.trigger(SubmissionEvent.FAIL)
            if exc.response is not None and exc.response.steps:
                self._state.steps = list(exc.response.steps)
            self._fail(exc.message)
        except AgentTransportError as exc:
            self._machine.trigger(SubmissionEvent.FAIL)
            self._fail(exc.message)
        except Exception:
            logger.warning("Submission failed unexpectedly", exc_info=True)
            self._machine.trigger(SubmissionEvent.FAIL)
            self._fail(GENERIC_UNEXPECTED_FAILURE)
        else:
            self._machine.trigger(SubmissionEvent.SUCCEED)
            self._state.steps = list(response.steps or [])
            self._state.current_status = response.status
            self._state.generated_email = response.generated_email
            self._state.instruction = ""
            logger.info("Submission succeeded", status=response.status.value)
        finally:
            self._release()

        return self.state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, text: str) -> None:
        self._machine.trigger(SubmissionEvent.LOCK)
        self._state.instruction = text
        self._state.in_flight = True
        self._state.last_error = None
        self._state.generated_email = None
        self._state.current_status = WorkflowStatus.IN_PROGRESS
        self._state.steps = optimistic_steps()
        logger.info("Submission started", length=len(text))
        self._publish()

    def _fail(self, message: str) -> None:
        self._state.last_error = message
        self._state.current_status = WorkflowStatus.ERROR
        logger.warning("Submission failed", error=message)

    def _release(self) -> None:
        # Cancellation skips the except clauses and arrives here still in flight.
        if self._machine.state == SubmissionPhase.IN_FLIGHT:
            self._machine.trigger(SubmissionEvent.FAIL)
            self._state.last_error = GENERIC_UNEXPECTED_FAILURE
            self._state.current_status = WorkflowStatus.ERROR
        self._machine.trigger(SubmissionEvent.RELEASE)
        self._state.in_flight = False
        self._publish()

    def _publish(self) -> None:
        self._changes.emit(self.state)
