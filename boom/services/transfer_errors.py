"""
Errors raised by the transfer engine. Each carries the HTTP status the API reports it with.
Precondition errors are raised before any mutation; InfrastructureError means the outcome
is unknown and the caller should re-read the balance before retrying.
"""
from fastapi import status


class TransferError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Transfer failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class NotFoundError(TransferError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InvalidOperationError(TransferError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid operation"


class ConflictError(TransferError):
    status_code = status.HTTP_409_CONFLICT
    detail = "You already own this video"


class InsufficientFundsError(TransferError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Insufficient balance"


class InvalidArgumentError(TransferError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Invalid argument"


class InfrastructureError(TransferError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Storage unavailable; the transfer outcome is unknown. Check your balance before retrying."
