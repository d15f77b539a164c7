import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class ExternalServiceError(APIException):
    """A third-party collaborator (push, storage, mail) failed on the request path."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "External service failure."
    default_code = "external_service_error"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "request", exc_info=exc)
    data = {"detail": "Internal server error"}
    if settings.DEBUG:
        data["details"] = str(exc)
    return Response(data, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
