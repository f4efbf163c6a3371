"""Text builders for the progress timeline and the generated draft.

Pure functions with no side effects; the CLI prints their output and the
tests assert on it directly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from emailagent.domain.models import EmailDraft, RenderStep, SubmissionState
from emailagent.domain.types import STATUS_LABEL, WorkflowStatus

_STATUS_MARK: dict[WorkflowStatus, str] = {
    WorkflowStatus.IDLE: "[ ]",
    WorkflowStatus.IN_PROGRESS: "[~]",
    WorkflowStatus.COMPLETED: "[x]",
    WorkflowStatus.ERROR: "[!]",
}


def build_timeline_rows(render_steps: Sequence[RenderStep]) -> list[dict[str, Any]]:
    """Build one row per stage for the timeline.

    Args:
        render_steps: Output of ``reconcile_steps``.

    Returns:
        List of row dicts with ``label``, ``status``, ``detail``, ``icon`` and
        ``is_last`` (no connector is drawn after the last stage).
    """
    last_index = len(render_steps) - 1
    return [
        {
            "label": step.label,
            "status": step.status.value,
            "detail": step.display_detail,
            "icon": step.icon,
            "is_last": index == last_index,
        }
        for index, step in enumerate(render_steps)
    ]


def render_draft(draft: EmailDraft) -> list[str]:
    """Render the draft panel: recipient, subject, then one line per body line."""
    return [
        f"To: {draft.recipient_display}",
        f"Subject: {draft.subject}",
        "",
        *draft.body_lines(),
    ]


def render_page(
    state: SubmissionState,
    render_steps: Sequence[RenderStep],
    connect_label: str,
    auth_error: str | None = None,
) -> str:
    """Render the whole page as plain text.

    Args:
        state: Current submission state.
        render_steps: Reconciled stages for ``state.steps``.
        connect_label: Text of the connect button.
        auth_error: Authentication error to show under the button, if any.

    Returns:
        Multi-line text.
    """
    lines: list[str] = [connect_label]
    if auth_error:
        lines.append(f"  ! {auth_error}")
    if state.last_error:
        lines.append(f"Error: {state.last_error}")

    lines.append("")
    for row, step in zip(build_timeline_rows(render_steps), render_steps, strict=True):
        lines.append(f"{_STATUS_MARK[step.status]} {row['label']:<11} {row['detail']}")
    lines.append(f"Status: {STATUS_LABEL[state.current_status]}")

    if state.generated_email is not None:
        lines.append("")
        lines.extend(render_draft(state.generated_email))

    return "\n".join(lines)
