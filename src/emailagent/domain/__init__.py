"""Domain types, models and errors for the email agent client."""

from emailagent.domain.errors import (
    AgentRequestError,
    AgentTransportError,
    EmailAgentError,
    InvalidTransitionError,
)
from emailagent.domain.models import (
    AgentResponse,
    AgentRunRequest,
    AuthPayload,
    EmailDraft,
    RenderStep,
    SubmissionState,
    WorkflowStep,
    WorkflowTemplateEntry,
)
from emailagent.domain.types import STATUS_LABEL, StepKey, WorkflowStatus

__all__ = [
    "STATUS_LABEL",
    "AgentRequestError",
    "AgentResponse",
    "AgentRunRequest",
    "AgentTransportError",
    "AuthPayload",
    "EmailAgentError",
    "EmailDraft",
    "InvalidTransitionError",
    "RenderStep",
    "StepKey",
    "SubmissionState",
    "WorkflowStatus",
    "WorkflowStep",
    "WorkflowTemplateEntry",
]
