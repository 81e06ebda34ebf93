# gamestore/errors.py
"""Failure classes of the order pipeline.

Each error knows the HTTP status it is reported with and whether the caller
may simply resend the same request.
"""


class OrderError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderError):
    """Missing or malformed input, detected before any database work."""
    status_code = 400


class PriceVerificationError(OrderError):
    """The package price could not be confirmed from the catalog."""
    status_code = 422


class InvalidPaymentMethodError(OrderError):
    status_code = 400


class DuplicateIdentifierError(OrderError):
    """A generated order/payment id collided with an existing row."""
    status_code = 409
    retryable = True


class ConstraintError(OrderError):
    """A column constraint rejected the data (too long, bad reference ...)."""
    status_code = 400


class TransactionError(OrderError):
    # Generic database failure; worth a retry but should be reported to operators
    status_code = 500
    retryable = True
