"""Codec for the decision button identifiers carried through Slack interactions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .record_store import ApprovalStatus

CONTROL_PREFIX = "inc"
DELIMITER = "_"
CONTROL_ID_PATTERN = re.compile(r"^inc_(approve|deny)_.+")


class DecisionAction(str, Enum):
    APPROVE = "approve"
    DENY = "deny"

    @property
    def target_status(self) -> ApprovalStatus:
        if self is DecisionAction.APPROVE:
            return ApprovalStatus.APPROVED
        return ApprovalStatus.DENIED

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class ControlToken:
    """A decision on a specific record, as encoded in a button's ``action_id``."""

    action: DecisionAction
    record_id: str

    def encode(self) -> str:
        if not self.record_id:
            raise ValueError("Control token requires a record identifier.")
        return DELIMITER.join((CONTROL_PREFIX, self.action.value, self.record_id))


def parse_control_id(control_id: str) -> ControlToken:
    """Parse ``inc_<action>_<record_id>``; the record id keeps any embedded delimiters."""

    prefix, _, remainder = (control_id or "").partition(DELIMITER)
    action_value, _, record_id = remainder.partition(DELIMITER)
    if prefix != CONTROL_PREFIX or not record_id:
        raise ValueError(f"Unrecognised control identifier: {control_id!r}")

    try:
        action = DecisionAction(action_value)
    except ValueError as exc:
        raise ValueError(f"Unrecognised control identifier: {control_id!r}") from exc

    return ControlToken(action=action, record_id=record_id)
