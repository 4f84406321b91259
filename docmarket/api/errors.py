from __future__ import annotations

import structlog
from fastapi import HTTPException

from docmarket.monetization import errors
from docmarket.services.document_store import DocumentBlobNotFoundError

logger = structlog.get_logger(__name__)

ERROR_RESPONSES: dict[type[Exception], tuple[int, str]] = {
    errors.InvalidUploadFeeAmountError: (402, "E_INVALID_UPLOAD_FEE_AMOUNT"),
    errors.DocumentOwnershipError: (403, "E_DOCUMENT_OWNERSHIP"),
    errors.TransactionReferenceMismatchError: (422, "E_TRANSACTION_REFERENCE_MISMATCH"),
    errors.DocumentNotForSaleError: (422, "E_DOCUMENT_NOT_FOR_SALE"),
    errors.InsufficientBalanceError: (422, "E_INSUFFICIENT_BALANCE"),
    errors.ValidationError: (422, "E_VALIDATION"),
    errors.UserNotFoundError: (404, "E_USER_NOT_FOUND"),
    errors.DocumentNotFoundError: (404, "E_DOCUMENT_NOT_FOUND"),
    errors.PurchaseNotFoundError: (404, "E_PURCHASE_NOT_FOUND"),
    errors.ReceiptNotFoundError: (404, "E_RECEIPT_NOT_FOUND"),
    errors.WithdrawalNotFoundError: (404, "E_WITHDRAWAL_NOT_FOUND"),
    DocumentBlobNotFoundError: (404, "E_DOCUMENT_FILE_NOT_FOUND"),
    errors.NotFoundError: (404, "E_NOT_FOUND"),
    errors.UploadFeeAlreadyPaidError: (409, "E_UPLOAD_FEE_ALREADY_PAID"),
    errors.UploadFeeRequiredError: (409, "E_UPLOAD_FEE_REQUIRED"),
    errors.PendingWithdrawalExistsError: (409, "E_PENDING_WITHDRAWAL_EXISTS"),
    errors.WithdrawalStateError: (409, "E_WITHDRAWAL_NOT_PENDING"),
    errors.PurchaseStateError: (409, "E_PURCHASE_REFUND_NOT_ALLOWED"),
    errors.StateError: (409, "E_STATE_CONFLICT"),
    errors.ConflictError: (409, "E_CONFLICT"),
    errors.StorageError: (503, "E_STORAGE_UNAVAILABLE"),
}


def as_http_exception(exc: errors.MonetizationError) -> HTTPException:
    if isinstance(exc, errors.DocumentAccessDeniedError):
        price = None if exc.price is None else str(exc.price)
        return HTTPException(status_code=403, detail={"code": "E_PURCHASE_REQUIRED", "price": price})

    for exc_type in type(exc).__mro__:
        response = ERROR_RESPONSES.get(exc_type)
        if response is not None:
            status_code, code = response
            break
    else:
        status_code, code = 500, "E_INTERNAL"

    if status_code >= 500:
        logger.exception("monetization_request_failed", code=code, error_type=type(exc).__name__)
    return HTTPException(status_code=status_code, detail={"code": code})
