"""Domain enumerations for the email agent client."""

from enum import StrEnum


class WorkflowStatus(StrEnum):
    """Status of a single pipeline stage or of the whole submission."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


class StepKey(StrEnum):
    """Stable keys of the four pipeline stages, in pipeline order."""

    INPUT = "Input"
    PROCESSING = "Processing"
    SENDING = "Sending"
    COMPLETED = "Completed"


# Human-readable label shown next to the overall submission status
STATUS_LABEL: dict[WorkflowStatus, str] = {
    WorkflowStatus.IDLE: "Idle",
    WorkflowStatus.IN_PROGRESS: "In progress",
    WorkflowStatus.COMPLETED: "Completed",
    WorkflowStatus.ERROR: "Error",
}
