from typing import Optional


class AppException(Exception):
    """Base application exception."""

    status_code: int = 500
    code: str = "INTERNAL"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found exception."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(AppException):
    """Validation error exception."""

    status_code = 422
    code = "VALIDATION_ERROR"


class PermissionDeniedError(AppException):
    """Caller lacks the privilege required for this operation."""

    status_code = 403
    code = "PERMISSION_DENIED"


class QuotaExceededError(AppException):
    """No remaining units of the requested feature."""

    status_code = 429
    code = "QUOTA_EXCEEDED"

    def __init__(
        self,
        message: Optional[str] = None,
        feature: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        self.feature = feature
        self.limit = limit
        super().__init__(message)


class InvalidSignatureError(AppException):
    """Payment callback signature could not be verified."""

    status_code = 400
    code = "INVALID_SIGNATURE"


class AmountMismatchError(AppException):
    """Payment callback amount does not match the recorded transaction."""

    status_code = 409
    code = "AMOUNT_MISMATCH"


class AlreadySatisfiedError(AppException):
    """Requested state is already in effect."""

    status_code = 409
    code = "ALREADY_SATISFIED"


class InvalidPaymentStateError(AppException):
    """Payment transaction cannot move to the requested status."""

    status_code = 409
    code = "INVALID_PAYMENT_STATE"


class InternalError(AppException):
    """Internal failure, operation was rolled back."""

    status_code = 500
    code = "INTERNAL"
