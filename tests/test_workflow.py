from datetime import date, timedelta

import pytest

from venue_crm.domain.bookings.workflow import (
    STATUS_ORDER,
    allowed_next,
    check_transition,
    is_option_expired,
)
from venue_crm.errors import AppError


class TestTransitions:
    def test_each_single_forward_step_is_allowed(self):
        expiry = date.today() + timedelta(days=14)
        for current, target in zip(STATUS_ORDER, STATUS_ORDER[1:]):
            assert check_transition(current.value, target.value, expiry) is True

    def test_same_state_is_noop(self):
        assert check_transition("confirmed", "confirmed") is False

    @pytest.mark.parametrize(
        "current,target",
        [("draft", "completed"), ("confirmed", "option"), ("completed", "draft"), ("proposal_sent", "draft")],
    )
    def test_other_moves_are_rejected(self, current, target):
        with pytest.raises(AppError) as exc_info:
            check_transition(current, target, date.today())
        error = exc_info.value
        assert error.status_code == 409
        assert error.code == "INVALID_STATUS_TRANSITION"
        assert error.details == {"from": current, "to": target, "allowed": allowed_next(current)}

    def test_option_requires_expiry(self):
        with pytest.raises(AppError) as exc_info:
            check_transition("proposal_sent", "option", None)
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.field == "optionExpiry"

    def test_completed_is_terminal(self):
        assert allowed_next("completed") == []
        assert allowed_next("draft") == ["proposal_sent"]


class TestOptionExpiry:
    def test_expired_only_while_on_option(self):
        today = date(2025, 6, 10)
        assert is_option_expired("option", date(2025, 6, 9), today) is True
        assert is_option_expired("option", date(2025, 6, 10), today) is False
        assert is_option_expired("confirmed", date(2025, 6, 1), today) is False
        assert is_option_expired("option", None, today) is False
