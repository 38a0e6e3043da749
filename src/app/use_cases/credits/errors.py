"""Error codes for credit use cases

Every failure a use case returns carries one of these codes. The calling
layer maps them to HTTP statuses with ERROR_HTTP_STATUS.
"""

from libs.result import Error


class ErrorCode:
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    PACKAGE_INACTIVE = "PACKAGE_INACTIVE"
    DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"


ERROR_HTTP_STATUS = {
    ErrorCode.INVALID_AMOUNT: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INSUFFICIENT_CREDITS: 402,
    ErrorCode.ACCOUNT_NOT_FOUND: 404,
    ErrorCode.PACKAGE_NOT_FOUND: 404,
    ErrorCode.PACKAGE_INACTIVE: 400,
    ErrorCode.DUPLICATE_REFERENCE: 409,
    ErrorCode.STORAGE_ERROR: 500,
}


def http_status_for(error: Error) -> int:
    return ERROR_HTTP_STATUS.get(error.code, 500)


def invalid_amount(amount) -> Error:
    return Error(
        code=ErrorCode.INVALID_AMOUNT,
        message="Amount must be a positive integer",
        reason=f"amount={amount!r}",
    )


def validate_amount(amount):
    """Return an INVALID_AMOUNT error for non-positive or non-integer amounts"""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return invalid_amount(amount)
    return None


def account_not_found(user_id: str) -> Error:
    return Error(
        code=ErrorCode.ACCOUNT_NOT_FOUND,
        message=f"Credit account not found for user {user_id}",
    )


def invalid_metadata(exc: Exception) -> Error:
    return Error(
        code=ErrorCode.VALIDATION_ERROR,
        message="Invalid event metadata",
        reason=str(exc),
    )
