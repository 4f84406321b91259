class MonetizationError(Exception):
    pass


class ValidationError(MonetizationError):
    pass


class NotFoundError(MonetizationError):
    pass


class ConflictError(MonetizationError):
    pass


class StorageError(MonetizationError):
    pass


class StateError(MonetizationError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class DocumentNotFoundError(NotFoundError):
    pass


class PurchaseNotFoundError(NotFoundError):
    pass


class ReceiptNotFoundError(NotFoundError):
    pass


class WithdrawalNotFoundError(NotFoundError):
    pass


class TransactionReferenceMismatchError(ValidationError):
    pass


class DocumentNotForSaleError(ValidationError):
    pass


class InvalidUploadFeeAmountError(ValidationError):
    pass


class InsufficientBalanceError(ValidationError):
    pass


class DocumentOwnershipError(ValidationError):
    pass


class DuplicatePurchaseError(ConflictError):
    pass


class UploadFeeAlreadyPaidError(StateError):
    pass


class UploadFeeRequiredError(StateError):
    pass


class PendingWithdrawalExistsError(StateError):
    pass


class WithdrawalStateError(StateError):
    pass


class PurchaseStateError(StateError):
    pass


class DocumentAccessDeniedError(MonetizationError):
    def __init__(self, *, document_id: int, price: object) -> None:
        super().__init__(f"document {document_id} requires purchase")
        self.document_id = document_id
        self.price = price
