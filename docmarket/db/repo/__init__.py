from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.db.repo.download_history_repo import DownloadHistoryRepo
from docmarket.db.repo.earnings_repo import EarningsRepo
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.db.repo.withdrawals_repo import WithdrawalsRepo

__all__ = [
    "DocumentsRepo",
    "DownloadHistoryRepo",
    "EarningsRepo",
    "PurchasesRepo",
    "ReconciliationRunsRepo",
    "UsersRepo",
    "WithdrawalsRepo",
]
