"""Handling of Approve/Deny button clicks on approval cards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from uuid import uuid4

from slack_sdk.errors import SlackApiError
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from .cards import build_decision_message, render_card
from .controls import ControlToken, parse_control_id
from .outcomes import best_effort
from .record_store import AirtableClient, ApprovalStatus, current_status
from .slack_client import SlackClient

_CONFIRMATIONS = {
    ApprovalStatus.APPROVED: "✅ Approved. Airtable updated and buttons removed.",
    ApprovalStatus.DENIED: "❌ Denied. Airtable updated and buttons removed.",
}


def already_decided_text(status: ApprovalStatus) -> str:
    return f"This request is already {status.value}."


@dataclass(frozen=True)
class InteractionContext:
    """Who clicked, and where the card they clicked lives."""

    user_id: str | None
    channel_id: str | None
    message_ts: str | None

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "InteractionContext":
        container = body.get("container") or {}
        message = body.get("message") or {}
        return cls(
            user_id=(body.get("user") or {}).get("id"),
            channel_id=(body.get("channel") or {}).get("id") or container.get("channel_id"),
            message_ts=container.get("message_ts") or message.get("ts"),
        )

    @property
    def can_reply(self) -> bool:
        return bool(self.user_id and self.channel_id)


def _error_text(exc: Exception) -> str:
    if isinstance(exc, SlackApiError) and getattr(exc, "response", None) is not None:
        return str(exc.response.get("error") or exc)
    return str(exc)


def _reply(slack: SlackClient, context: InteractionContext, text: str, log) -> None:
    if not context.can_reply:
        log.warning("reply_skipped", reason="missing_reviewer_context", text=text)
        return
    slack.post_ephemeral(channel=context.channel_id, user=context.user_id, text=text)


def apply_decision(
    *,
    token: ControlToken,
    context: InteractionContext,
    slack: SlackClient,
    store: AirtableClient,
    log=None,
) -> ApprovalStatus | None:
    """Move a pending record to the decision carried by *token*.

    Returns the status written, or ``None`` when the record was already
    decided. The status guard is a plain read-then-write: two reviewers
    clicking at the same moment can both pass it.
    """

    log = log or structlog.get_logger()

    fields = store.fields(token.record_id)
    status = current_status(fields)
    if status is not None and status.is_terminal:
        log.info("decision_already_recorded", status=status.value)
        _reply(slack, context, already_decided_text(status), log)
        return None

    decision = token.action.target_status
    best_effort("set_status", store.set_status, token.record_id, decision).discard()

    if context.channel_id and context.message_ts:
        payload = build_decision_message(
            render_card(token.record_id, fields),
            decision=decision,
            decided_by=context.user_id,
        )
        best_effort(
            "remove_controls",
            slack.update_message,
            channel=context.channel_id,
            ts=context.message_ts,
            text=payload["text"],
            blocks=payload["blocks"],
        ).discard()
    else:
        log.warning("card_reference_missing")

    log.info("decision_recorded", decision=decision.value, previous_status=status.value if status else None)
    _reply(slack, context, _CONFIRMATIONS[decision], log)
    return decision


def handle_decision_action(*, ack, body, slack: SlackClient, store: AirtableClient, logger) -> None:
    """Bolt listener body for ``inc_approve_*`` / ``inc_deny_*`` buttons."""

    trace_id = str(uuid4())
    bind_contextvars(trace_id=trace_id)
    log = structlog.get_logger().bind(trace_id=trace_id)

    try:
        actions = body.get("actions") or []
        action = actions[0] if actions else {}
        if action.get("type") != "button":
            ack()
            log.info("interaction_ignored", reason="not_a_button")
            return

        try:
            token = parse_control_id(action.get("action_id", ""))
        except ValueError:
            ack()
            log.info("interaction_ignored", reason="unrecognised_control", action_id=action.get("action_id"))
            return

        context = InteractionContext.from_body(body)
        log = log.bind(record_id=token.record_id, action=token.action.value, user_id=context.user_id)

        # Slack expects the ack within three seconds; Airtable may be slower.
        ack()
        log.info("interaction_acknowledged")

        try:
            apply_decision(token=token, context=context, slack=slack, store=store, log=log)
        except Exception as exc:
            error_text = _error_text(exc)
            log.error("decision_failed", error=error_text, error_type=type(exc).__name__)
            logger.exception(
                "Failed to apply approval decision",
                extra={"record_id": token.record_id, "action": token.action.value},
            )
            if context.can_reply:
                best_effort(
                    "reply_error",
                    slack.post_ephemeral,
                    channel=context.channel_id,
                    user=context.user_id,
                    text=f"Error: {error_text}",
                ).discard()
    finally:
        unbind_contextvars("trace_id")
