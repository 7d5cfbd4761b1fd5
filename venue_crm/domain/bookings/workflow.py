"""
Booking status workflow

    draft -> proposal_sent -> option -> confirmed -> completed

Only the single forward step is allowed. Re-submitting the current status is
a no-op; anything else is rejected with INVALID_STATUS_TRANSITION.
"""

from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Optional

from ...errors import AppError, validation_error


class BookingStatus(str, Enum):
    DRAFT = "draft"
    PROPOSAL_SENT = "proposal_sent"
    OPTION = "option"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


STATUS_ORDER = tuple(BookingStatus)

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        BookingStatus.DRAFT: frozenset({BookingStatus.PROPOSAL_SENT}),
        BookingStatus.PROPOSAL_SENT: frozenset({BookingStatus.OPTION}),
        BookingStatus.OPTION: frozenset({BookingStatus.CONFIRMED}),
        BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED}),
        BookingStatus.COMPLETED: frozenset(),
    }
)


def allowed_next(status: str) -> list[str]:
    return sorted(s.value for s in ALLOWED_TRANSITIONS[BookingStatus(status)])


def invalid_transition(current: str, target: str) -> AppError:
    return AppError(
        f"Cannot change booking status from {current} to {target}",
        409,
        "INVALID_STATUS_TRANSITION",
        field="status",
        details={"from": current, "to": target, "allowed": allowed_next(current)},
    )


def check_transition(current: str, target: str, option_expiry: Optional[date] = None) -> bool:
    """
    Validate moving a booking from ``current`` to ``target``.

    ``option_expiry`` is the expiry the booking will have after the change.

    Returns:
        True when the status changes, False for a same-state no-op

    Raises:
        AppError: INVALID_STATUS_TRANSITION (409), or VALIDATION_ERROR when
            entering ``option`` without an expiry date
    """
    if current == target:
        return False

    if BookingStatus(target) not in ALLOWED_TRANSITIONS[BookingStatus(current)]:
        raise invalid_transition(current, target)

    if target == BookingStatus.OPTION.value and option_expiry is None:
        raise validation_error("An option expiry date is required to place an option", field="optionExpiry")

    return True


def is_option_expired(status: str, option_expiry: Optional[date], today: Optional[date] = None) -> bool:
    if status != BookingStatus.OPTION.value or option_expiry is None:
        return False
    return option_expiry < (today or date.today())
