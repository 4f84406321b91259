from __future__ import annotations

from docmarket.monetization.errors import ValidationError, WithdrawalStateError

WITHDRAWAL_STATUSES = frozenset({"pending", "paid", "declined"})
TERMINAL_WITHDRAWAL_STATUSES = frozenset({"paid", "declined"})

_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": TERMINAL_WITHDRAWAL_STATUSES,
    "paid": frozenset(),
    "declined": frozenset(),
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_WITHDRAWAL_STATUSES


def validate_target_status(new_status: str) -> str:
    normalized = (new_status or "").strip().lower()
    if normalized not in TERMINAL_WITHDRAWAL_STATUSES:
        raise ValidationError(f"unsupported withdrawal status: {new_status}")
    return normalized


def assert_transition_allowed(current_status: str, new_status: str) -> None:
    if new_status not in _ALLOWED_TRANSITIONS.get(current_status, frozenset()):
        raise WithdrawalStateError(f"withdrawal is already {current_status}")
