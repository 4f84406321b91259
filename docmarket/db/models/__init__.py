from docmarket.db.models.documents import Document
from docmarket.db.models.download_history import DownloadHistory
from docmarket.db.models.purchases import Purchase
from docmarket.db.models.reconciliation_runs import ReconciliationRun
from docmarket.db.models.users import User
from docmarket.db.models.withdrawals import Withdrawal

__all__ = [
    "Document",
    "DownloadHistory",
    "Purchase",
    "ReconciliationRun",
    "User",
    "Withdrawal",
]
