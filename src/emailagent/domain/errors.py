"""Domain-specific exception classes for the email agent client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from emailagent.domain.models import AgentResponse

GENERIC_REQUEST_FAILURE = "Unable to process automation request."
GENERIC_UNEXPECTED_FAILURE = "Unexpected error"


class EmailAgentError(Exception):
    """Base class for all domain errors in the email agent client."""


class InvalidTransitionError(EmailAgentError):
    """Raised when an invalid submission phase transition is attempted.

    Attributes:
        current_state: The phase the machine was in when the transition was attempted.
        event: The event that was rejected.
    """

    def __init__(self, current_state: str, event: str) -> None:
        self.current_state = current_state
        self.event = event
        super().__init__(f"Cannot apply event '{event}' in state '{current_state}'")


class AgentRequestError(EmailAgentError):
    """Raised when the automation service answers with a non-2xx status.

    Attributes:
        message: The service's ``message`` field, or a generic fallback.
        status_code: The HTTP status code of the response.
        response: The parsed response body when it matched the schema.
    """

    def __init__(
        self,
        message: str | None,
        status_code: int,
        response: AgentResponse | None = None,
    ) -> None:
        self.message = message or GENERIC_REQUEST_FAILURE
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class AgentTransportError(EmailAgentError):
    """Raised when the request never produced a usable response.

    Covers connection failures and 2xx bodies that are not valid JSON or
    do not match the response schema.
    """

    def __init__(self, message: str | None) -> None:
        self.message = message or GENERIC_UNEXPECTED_FAILURE
        super().__init__(self.message)
