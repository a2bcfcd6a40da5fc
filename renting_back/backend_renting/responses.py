from rest_framework import status as http_status
from rest_framework.response import Response


def envelope(status_code, message, data=None):
    return {
        "status": status_code,
        "message": message,
        "data": data if data is not None else {},
    }


def api_response(data=None, message="OK", status=http_status.HTTP_200_OK, headers=None):
    """Standard `{status, message, data}` response used by every endpoint."""
    return Response(envelope(status, message, data), status=status, headers=headers)
