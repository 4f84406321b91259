from docmarket.monetization.purchases.service import PurchaseService
from docmarket.monetization.purchases.types import PdfPurchase, PurchaseTarget, UploadFee

__all__ = [
    "PdfPurchase",
    "PurchaseService",
    "PurchaseTarget",
    "UploadFee",
]
