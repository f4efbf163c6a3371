"""Projection of the server's step list onto the fixed stage template."""

from __future__ import annotations

from collections.abc import Sequence

from emailagent.domain.models import RenderStep, WorkflowStep, WorkflowTemplateEntry
from emailagent.domain.types import WorkflowStatus
from emailagent.workflow.template import WORKFLOW_TEMPLATE


def reconcile_steps(
    steps: Sequence[WorkflowStep] | None,
    template: Sequence[WorkflowTemplateEntry] = WORKFLOW_TEMPLATE,
) -> list[RenderStep]:
    """Merge *steps* into *template*, one ``RenderStep`` per template entry.

    Steps are matched to entries by ``name == key``; the first match wins and
    later duplicates are ignored.  An entry without a match renders as idle
    with the template caption as its detail.  Steps whose name matches no
    entry are dropped.

    Args:
        steps: Step list from the service or the optimistic snapshot; may be
               ``None`` or empty.
        template: The stage definitions, in display order.

    Returns:
        Exactly ``len(template)`` render steps, in template order.
    """
    first_by_name: dict[str, WorkflowStep] = {}
    for step in steps or ():
        first_by_name.setdefault(step.name, step)

    rendered: list[RenderStep] = []
    for entry in template:
        match = first_by_name.get(entry.key)
        if match is None:
            status, detail = WorkflowStatus.IDLE, entry.caption
        else:
            status, detail = match.status, match.detail
        rendered.append(
            RenderStep(
                key=entry.key,
                label=entry.label,
                caption=entry.caption,
                icon=entry.icon,
                status=status,
                detail=detail,
            )
        )
    return rendered
