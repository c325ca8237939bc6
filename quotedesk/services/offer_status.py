"""Offer status lifecycle: draft -> sent -> accepted / rejected."""
import enum
from dataclasses import dataclass
from typing import List, Optional

from quotedesk.exceptions import ValidationError


class OfferStatus(str, enum.Enum):
    """Offer status enum."""
    DRAFT = 'draft'
    SENT = 'sent'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'


INITIAL_STATUS = OfferStatus.DRAFT

# Single source of truth for allowed transitions
ALLOWED_TRANSITIONS = {
    OfferStatus.DRAFT: {OfferStatus.SENT},
    OfferStatus.SENT: {OfferStatus.ACCEPTED, OfferStatus.REJECTED},
    OfferStatus.ACCEPTED: set(),
    OfferStatus.REJECTED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


@dataclass(frozen=True)
class TransitionResult:
    ok: bool
    reason: Optional[str] = None


def recognized_statuses() -> List[str]:
    return [s.value for s in OfferStatus]


def parse_status(value) -> OfferStatus:
    """Map a raw value to OfferStatus; unknown values never default to draft."""
    if isinstance(value, OfferStatus):
        return value
    try:
        return OfferStatus(str(value).strip().lower())
    except ValueError:
        allowed = ', '.join(recognized_statuses())
        raise ValidationError(f"Unknown status '{value}'. Allowed: {allowed}")


def can_transition(current, new) -> TransitionResult:
    current = parse_status(current)
    new = parse_status(new)

    if new == current:
        return TransitionResult(ok=True)

    if new in ALLOWED_TRANSITIONS[current]:
        return TransitionResult(ok=True)

    return TransitionResult(
        ok=False,
        reason=f"Cannot change status from {current.value} to {new.value}",
    )


def assert_can_transition(current, new) -> OfferStatus:
    """Raise ValidationError when the transition is not part of the workflow."""
    res = can_transition(current, new)
    if not res.ok:
        raise ValidationError(res.reason or 'Invalid status transition')
    return parse_status(new)


def allowed_next_statuses(current) -> List[str]:
    return sorted(s.value for s in ALLOWED_TRANSITIONS[parse_status(current)])


def is_editable(status) -> bool:
    """Lines and totals may only change while the offer is a draft."""
    return parse_status(status) == OfferStatus.DRAFT
