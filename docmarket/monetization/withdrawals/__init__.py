from docmarket.monetization.withdrawals.service import (
    BankDetails,
    WithdrawalListItem,
    create_withdrawal,
    list_withdrawals,
    request_withdrawal,
    update_withdrawal_status,
)

__all__ = [
    "BankDetails",
    "WithdrawalListItem",
    "create_withdrawal",
    "list_withdrawals",
    "request_withdrawal",
    "update_withdrawal_status",
]
