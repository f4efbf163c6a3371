"""The fixed, ordered definition of the four pipeline stages."""

from emailagent.domain.models import WorkflowTemplateEntry
from emailagent.domain.types import StepKey

WORKFLOW_TEMPLATE: tuple[WorkflowTemplateEntry, ...] = (
    WorkflowTemplateEntry(key=StepKey.INPUT, label="Input", caption="Instruction", icon="mail"),
    WorkflowTemplateEntry(
        key=StepKey.PROCESSING, label="Processing", caption="AI Planning", icon="spark"
    ),
    WorkflowTemplateEntry(
        key=StepKey.SENDING, label="Sending", caption="SMTP Dispatch", icon="plane"
    ),
    WorkflowTemplateEntry(
        key=StepKey.COMPLETED, label="Completed", caption="Success", icon="check"
    ),
)
