"""Block Kit builders for incentive approval cards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .controls import ControlToken, DecisionAction
from .record_store import (
    FIELD_AGENT_NAME,
    FIELD_DATE,
    FIELD_INCENTIVE,
    FIELD_SUBMITTED_BY,
    ApprovalStatus,
)

CARD_TITLE = "🎁 Incentive Approval Request"
ACTIONS_BLOCK_ID = "incentive_decision_buttons"
INCENTIVE_DISPLAY_LIMIT = 1200
PLACEHOLDER = "—"

_CONTROL_STYLES = {
    DecisionAction.APPROVE: "primary",
    DecisionAction.DENY: None,  # Slack's default button style is the neutral one
}

_DECISION_EMOJI = {
    ApprovalStatus.APPROVED: "✅",
    ApprovalStatus.DENIED: "❌",
}


@dataclass(frozen=True)
class CardControl:
    label: str
    control_id: str
    style: str | None = None


@dataclass(frozen=True)
class ApprovalCard:
    title: str
    body: str
    controls: Tuple[CardControl, ...]


def display_value(value: Any) -> str:
    if value is None:
        return PLACEHOLDER
    if isinstance(value, str) and value == "":
        return PLACEHOLDER
    return str(value)


def render_card(record_id: str, fields: Mapping[str, Any]) -> ApprovalCard:
    """Render a record's fields into the card shown to reviewers."""

    incentive = display_value(fields.get(FIELD_INCENTIVE))[:INCENTIVE_DISPLAY_LIMIT]
    body = "\n".join(
        [
            f"*{display_value(fields.get(FIELD_AGENT_NAME))}*",
            "",
            "*Date*",
            display_value(fields.get(FIELD_DATE)),
            "",
            "*Incentive*",
            incentive,
            "",
            "*Submitted By*",
            display_value(fields.get(FIELD_SUBMITTED_BY)),
        ]
    )

    controls = tuple(
        CardControl(
            label=action.label,
            control_id=ControlToken(action=action, record_id=record_id).encode(),
            style=_CONTROL_STYLES[action],
        )
        for action in (DecisionAction.APPROVE, DecisionAction.DENY)
    )
    return ApprovalCard(title=CARD_TITLE, body=body, controls=controls)


def _button(control: CardControl) -> Dict[str, Any]:
    button: Dict[str, Any] = {
        "type": "button",
        "text": {"type": "plain_text", "text": control.label, "emoji": True},
        "action_id": control.control_id,
    }
    if control.style:
        button["style"] = control.style
    return button


def _content_blocks(card: ApprovalCard) -> List[Dict[str, Any]]:
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": card.title, "emoji": True},
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": card.body},
        },
    ]


def build_card_message(card: ApprovalCard) -> Dict[str, Any]:
    """Build the Slack message payload for a pending approval card."""

    blocks = _content_blocks(card)
    blocks.append(
        {
            "type": "actions",
            "block_id": ACTIONS_BLOCK_ID,
            "elements": [_button(control) for control in card.controls],
        }
    )
    return {"text": card.title, "blocks": blocks}


def build_decision_message(card: ApprovalCard, *, decision: ApprovalStatus, decided_by: str | None) -> Dict[str, Any]:
    """Return the card without its controls, annotated with the decision."""

    emoji = _DECISION_EMOJI.get(decision, "ℹ️")
    summary = f"{emoji} {decision.value}"
    if decided_by:
        summary = f"{summary} by <@{decided_by}>"

    blocks = _content_blocks(card)
    blocks.append(
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": summary}],
        }
    )
    return {"text": f"{card.title}: {decision.value}", "blocks": blocks}
