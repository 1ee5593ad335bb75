"""Translate workflow ``Failure`` results into DRF responses."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.response import Response

from shared.domain.results import ErrorKind, Failure

FAILURE_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EMPTY_CART: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INACTIVE_PRODUCT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.OUT_OF_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.AMOUNT_MISMATCH: status.HTTP_409_CONFLICT,
    ErrorKind.PAYMENT_NOT_APPROVED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.PAYMENT_IN_PROGRESS: status.HTTP_409_CONFLICT,
    ErrorKind.PAYMENT_OUTCOME_UNKNOWN: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.ORDER_PERSISTENCE_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def failure_response(failure: Failure) -> Response:
    """Build ``{"code", "detail"}`` with the status mapped from the kind.

    Failures raised after a successful charge also carry ``charged: true``
    so clients can tell "your purchase failed" from "you were charged but
    we could not record your order".
    """
    body: dict[str, object] = {
        "code": failure.kind.value,
        "detail": failure.message,
    }
    if failure.customer_was_charged:
        body["charged"] = True
    return Response(
        body,
        status=FAILURE_STATUS.get(failure.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def validation_message(exc: PydanticValidationError) -> str:
    """Flatten a Pydantic error into one human-readable sentence."""
    messages = []
    for error in exc.errors():
        message = str(error.get("msg", "Invalid value."))
        messages.append(message.removeprefix("Value error, "))
    return " ".join(messages) or "Invalid input."


def invalid_input_response(exc: PydanticValidationError) -> Response:
    return failure_response(
        Failure(kind=ErrorKind.INVALID_INPUT, message=validation_message(exc))
    )
