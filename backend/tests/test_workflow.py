import pytest

from app.services.licences.workflow import (
    APPROVED,
    CANCELED,
    PENDING_APPROVAL,
    PENDING_REGISTRATION,
    REGISTRATION_IN_PROGRESS,
    REJECTED,
    UNDER_REVIEW,
    allowed_next,
    can_transition,
)


@pytest.mark.parametrize(
    "current,new_status",
    [
        (PENDING_REGISTRATION, REGISTRATION_IN_PROGRESS),
        (PENDING_REGISTRATION, APPROVED),
        (UNDER_REVIEW, PENDING_APPROVAL),
        (UNDER_REVIEW, UNDER_REVIEW),
        (PENDING_APPROVAL, REJECTED),
        (APPROVED, APPROVED),
        (APPROVED, CANCELED),
        (CANCELED, CANCELED),
    ],
)
def test_allowed_moves(current, new_status):
    assert can_transition(current, new_status)


@pytest.mark.parametrize(
    "current,new_status",
    [
        (UNDER_REVIEW, REGISTRATION_IN_PROGRESS),
        (APPROVED, UNDER_REVIEW),
        (APPROVED, REJECTED),
        (REJECTED, APPROVED),
        (CANCELED, PENDING_REGISTRATION),
    ],
)
def test_blocked_moves(current, new_status):
    assert not can_transition(current, new_status)


def test_unknown_current_status_behaves_like_start_of_flow():
    assert allowed_next("pending") == allowed_next(PENDING_REGISTRATION)
