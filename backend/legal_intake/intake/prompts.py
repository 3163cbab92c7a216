"""
Prompt construction for each intake stage.

Earlier findings are rendered as plain "- Label: value" lines; only the
current stage's response format uses quoted JSON keys.
"""

from typing import List

from legal_intake.intake.matter_types import known_labels
from legal_intake.intake.models import IntakeSession, IntakeState


def render_findings(state: IntakeState) -> str:
    """Summarize prior stage records for the next prompt."""
    lines: List[str] = []

    if state.classification:
        c = state.classification
        lines.append(f"- Workflow: {c.workflow.value} (confidence {c.confidence:.2f})")

    if state.matter:
        m = state.matter
        lines.append(f"- Matter type: {m.matter_type}")
        lines.append(f"- Urgency: {m.urgency.value}")
        lines.append(f"- Complexity: {m.complexity}/10")
        if m.intent:
            lines.append(f"- Client intent: {m.intent}")
        lines.append(f"- Estimated value: {m.estimated_value:g}")

    if state.contact:
        ct = state.contact
        lines.append(f"- Client name: {ct.full_name or 'not provided'}")
        lines.append(f"- Email provided: {'yes' if ct.email else 'no'}")
        lines.append(f"- Phone provided: {'yes' if ct.phone else 'no'}")
        lines.append(f"- Description: {ct.matter_description or 'not provided'}")
        lines.append(f"- Opposing party: {ct.opposing_party or 'not provided'}")

    if state.quality:
        q = state.quality
        lines.append(
            f"- Scores: quality {q.quality_score}, completeness {q.completeness_score}, "
            f"clarity {q.clarity_score}"
        )
        lines.append(f"- Human review required: {'yes' if q.requires_human_review else 'no'}")

    return "\n".join(lines) if lines else "- None yet"


def _frame(session: IntakeSession, state: IntakeState, task: str, response_format: str) -> str:
    return f"""{task}

## Client message
{session.message}

## Findings so far
{render_findings(state)}

## Response format (a single JSON object, no markdown)
{response_format}
"""


def classification_prompt(session: IntakeSession, state: IntakeState) -> str:
    return _frame(
        session,
        state,
        "Classify what the prospective client wants. Choose one workflow:\n"
        "- MATTER_CREATION: they describe a legal problem they want help with\n"
        "- GENERAL_INQUIRY: questions about services, pricing or the firm\n"
        "- LAWYER_SEARCH: they are looking for a lawyer elsewhere\n"
        "- OTHER: anything else",
        '{"workflow": "MATTER_CREATION", "confidence": 0.85, "reasoning": "..."}',
    )


def matter_prompt(session: IntakeSession, state: IntakeState) -> str:
    labels = ", ".join(known_labels())
    return _frame(
        session,
        state,
        "Extract the legal matter. Use one of these matter types when it fits: "
        f"{labels}.\nurgency is low, medium or high; complexity is an integer from 1 to 10; "
        "estimated_value is a non-negative number in USD (0 if unknown).",
        '{"matter_type": "Family Law", "urgency": "medium", "complexity": 5, '
        '"intent": "...", "estimated_value": 0}',
    )


def contact_prompt(session: IntakeSession, state: IntakeState) -> str:
    return _frame(
        session,
        state,
        "Extract the client's contact details exactly as written. "
        "Use null for anything the client did not provide; never invent values.",
        '{"full_name": "...", "email": null, "phone": null, '
        '"matter_description": "...", "opposing_party": null}',
    )


def quality_prompt(session: IntakeSession, state: IntakeState) -> str:
    return _frame(
        session,
        state,
        "Assess how ready this intake is for attorney review. Scores are integers "
        "from 0 to 100. List concrete recommendations for missing information.",
        '{"quality_score": 0, "completeness_score": 0, "clarity_score": 0, '
        '"requires_human_review": true, "recommendations": ["..."]}',
    )


def action_prompt(session: IntakeSession, state: IntakeState) -> str:
    return _frame(
        session,
        state,
        "Decide the next step for this intake:\n"
        "- REQUEST_LAWYER_APPROVAL: ready for an attorney to accept\n"
        "- REQUEST_MORE_INFO: ask the client for missing details\n"
        "- ESCALATE: needs immediate attention\n"
        "- REJECT: outside what the firm can take on\n"
        "priority is low, medium or high.",
        '{"action": "REQUEST_LAWYER_APPROVAL", "priority": "medium", "reasoning": "..."}',
    )
