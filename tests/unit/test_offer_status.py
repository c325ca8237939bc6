"""
Unit tests for the offer status lifecycle.
"""

import pytest

from quotedesk.exceptions import ValidationError
from quotedesk.services.offer_status import (
    OfferStatus, INITIAL_STATUS, TERMINAL_STATUSES, parse_status, can_transition,
    assert_can_transition, allowed_next_statuses, is_editable, recognized_statuses,
)


class TestParseStatus:
    def test_known_values(self):
        assert parse_status('sent') == OfferStatus.SENT
        assert parse_status(' Accepted ') == OfferStatus.ACCEPTED
        assert parse_status(OfferStatus.REJECTED) == OfferStatus.REJECTED

    def test_unknown_value_is_rejected(self):
        """Unknown statuses never fall back to draft."""
        with pytest.raises(ValidationError) as exc_info:
            parse_status('cancelled')
        assert "Unknown status 'cancelled'" in exc_info.value.message
        assert 'draft, sent, accepted, rejected' in exc_info.value.message

    def test_recognized_set(self):
        assert recognized_statuses() == ['draft', 'sent', 'accepted', 'rejected']


class TestTransitions:
    """Test draft -> sent -> accepted/rejected."""

    def test_initial_status_is_draft(self):
        assert INITIAL_STATUS == OfferStatus.DRAFT

    def test_happy_path(self):
        assert can_transition('draft', 'sent').ok
        assert can_transition('sent', 'accepted').ok
        assert can_transition('sent', 'rejected').ok

    def test_same_status_is_noop(self):
        assert can_transition('sent', 'sent').ok

    @pytest.mark.parametrize('current,new', [
        ('draft', 'accepted'),
        ('draft', 'rejected'),
        ('sent', 'draft'),
        ('accepted', 'rejected'),
        ('rejected', 'sent'),
        ('accepted', 'draft'),
    ])
    def test_disallowed(self, current, new):
        result = can_transition(current, new)
        assert not result.ok
        assert result.reason == f"Cannot change status from {current} to {new}"

    def test_assert_raises_validation_error(self):
        with pytest.raises(ValidationError):
            assert_can_transition('accepted', 'sent')

    def test_assert_returns_target(self):
        assert assert_can_transition('draft', 'sent') == OfferStatus.SENT

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {OfferStatus.ACCEPTED, OfferStatus.REJECTED}
        assert allowed_next_statuses('accepted') == []
        assert allowed_next_statuses('sent') == ['accepted', 'rejected']

    def test_only_drafts_are_editable(self):
        assert is_editable('draft')
        assert not is_editable('sent')
        assert not is_editable('accepted')
