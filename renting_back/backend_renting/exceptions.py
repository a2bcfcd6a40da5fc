# backend_renting/exceptions.py
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

from .responses import envelope

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with existing data."
    default_code = "conflict"


class InvalidState(APIException):
    """A lifecycle transition was attempted from the wrong state."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The operation is not allowed in the current state."
    default_code = "invalid_state"


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "An internal error occurred. Please try again later."
    default_code = "internal_error"


def _first_message(data):
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        if not data:
            return "Invalid request."
        field, errors = next(iter(data.items()))
        first = errors[0] if isinstance(errors, list) and errors else errors
        if isinstance(first, (dict, list)):
            return _first_message(first)
        if field in ("non_field_errors", "__all__"):
            return str(first)
        return f"{field}: {first}"
    if isinstance(data, list) and data:
        return _first_message(data[0]) if isinstance(data[0], (dict, list)) else str(data[0])
    return str(data)


def _is_unique_violation(exc):
    # psycopg2 exposes the SQLSTATE; sqlite only reports it in the message
    if getattr(exc.__cause__, "pgcode", None) == "23505":
        return True
    text = str(exc).lower()
    return "unique" in text or "duplicate key" in text


def custom_exception_handler(exc, context):
    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        exc = ValidationError(detail=detail)
    elif isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        logger.warning(f"Unique constraint violated in {view_name}: {exc}")
        exc = Conflict("A record with the same unique values already exists.")
    elif isinstance(exc, DatabaseError):
        logger.exception(f"Database error in {view_name}", exc_info=exc)
        exc = InternalError()

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error in {view_name}", exc_info=exc)
        response = exception_handler(InternalError(), context)

    data = response.data
    details = None if isinstance(data, dict) and set(data) == {"detail"} else data
    response.data = envelope(response.status_code, _first_message(data), details)
    return response
