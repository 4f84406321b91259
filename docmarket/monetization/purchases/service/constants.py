from __future__ import annotations

RECORDABLE_STATUSES = frozenset({"pending", "completed", "failed"})
SETTLEMENT_STATUSES = frozenset({"completed", "failed"})
REFUNDABLE_STATUSES = frozenset({"completed"})
DEFAULT_PAYMENT_METHOD = "unknown"
