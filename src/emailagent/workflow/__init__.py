"""Pipeline stage template, reconciliation and text rendering."""

from emailagent.workflow.reconciler import reconcile_steps
from emailagent.workflow.template import WORKFLOW_TEMPLATE
from emailagent.workflow.view import (
    build_timeline_rows,
    render_draft,
    render_page,
)

__all__ = [
    "WORKFLOW_TEMPLATE",
    "build_timeline_rows",
    "reconcile_steps",
    "render_draft",
    "render_page",
]
