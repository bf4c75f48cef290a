"""Errors raised while handling an expense submission.

Each carries the message returned to the caller and the HTTP status the
form endpoint answers with; the handler converts them into a
``RecordResult`` instead of letting them propagate.
"""
from fastapi import status


class RecordError(Exception):
    """Base class for expected handler failures."""

    message = "An unexpected error occurred while adding the expense record."
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(RecordError):
    message = "Text, amount, category, or date is missing"
    status_code = status.HTTP_400_BAD_REQUEST


class DateFormatError(RecordError):
    message = "Invalid date format"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(RecordError):
    message = "User not authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class AmountError(ValidationError):
    message = "Amount must be a valid number"
