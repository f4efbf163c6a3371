"""Pydantic v2 models for the identity, workflow and submission data."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from emailagent.domain.types import WorkflowStatus


class AuthPayload(BaseModel):
    """Identity and credentials delivered by the login flow.

    Identity is defined solely by a non-empty ``email``; every other field is
    an opaque credential that is stored and passed through untouched.
    ``expires_in`` is persisted but never acted upon.
    """

    model_config = ConfigDict(extra="ignore")

    email: str | None = None
    name: str | None = None
    picture: str | None = None
    id_token: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: str | int | None = None

    @property
    def is_authenticated(self) -> bool:
        """Return True if the payload carries a non-empty email."""
        return bool(self.email)

    @property
    def display_name(self) -> str | None:
        """Return the user's name, falling back to the email."""
        return self.name or self.email


class WorkflowStep(BaseModel):
    """Status of one pipeline stage as reported by the service (or synthesized locally)."""

    name: str
    status: WorkflowStatus = WorkflowStatus.IDLE
    detail: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def unknown_status_is_idle(cls, v: object) -> object:
        """Read a null or unrecognized status as idle."""
        if v not in list(WorkflowStatus):
            return WorkflowStatus.IDLE
        return v


class WorkflowTemplateEntry(BaseModel):
    """One of the four fixed pipeline stages.

    ``icon`` names the glyph the presentation layer draws for this stage.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    caption: str
    icon: str


class RenderStep(BaseModel):
    """A template entry merged with its matching server step, ready for display."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    caption: str
    icon: str
    status: WorkflowStatus = WorkflowStatus.IDLE
    detail: str | None = None

    @property
    def display_detail(self) -> str:
        """Return the step detail, or the template caption when there is none."""
        return self.detail or self.caption


class EmailDraft(BaseModel):
    """Email generated by the service, displayed verbatim."""

    recipient_email: str
    recipient_name: str | None = None
    subject: str
    body: str

    @property
    def recipient_display(self) -> str:
        """Return ``"Name <email>"`` when a name is known, else the bare email."""
        if self.recipient_name:
            return f"{self.recipient_name} <{self.recipient_email}>"
        return self.recipient_email

    def body_lines(self) -> list[str]:
        """Split the body into lines for rendering."""
        return self.body.split("\n")


class AgentRunRequest(BaseModel):
    """JSON body of ``POST /agent/run``."""

    instruction: str
    user_email: str | None = None
    user_name: str | None = None


class AgentResponse(BaseModel):
    """JSON body returned by ``POST /agent/run`` for both success and failure."""

    model_config = ConfigDict(extra="ignore")

    status: WorkflowStatus = WorkflowStatus.ERROR
    message: str | None = None
    steps: list[WorkflowStep] | None = Field(default_factory=list)
    generated_email: EmailDraft | None = None


class SubmissionState(BaseModel):
    """Everything the page shows about the current (or last) submission."""

    instruction: str = ""
    in_flight: bool = False
    last_error: str | None = None
    current_status: WorkflowStatus = WorkflowStatus.IDLE
    generated_email: EmailDraft | None = None
    steps: list[WorkflowStep] = Field(default_factory=list)
