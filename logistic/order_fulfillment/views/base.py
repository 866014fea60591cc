"""
Response helpers shared by the engine's views.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from ..exceptions import BusinessException, ValidationException

logger = logging.getLogger(__name__)

# Error codes answered with something other than 400 Bad Request
ERROR_STATUS = {
    'NOT_FOUND': status.HTTP_404_NOT_FOUND,
    'ISSUE_ALREADY_OPEN': status.HTTP_409_CONFLICT,
}


def success_response(data, http_status=status.HTTP_200_OK):
    return Response({'success': True, 'data': data}, status=http_status)


def error_response(exc: BusinessException):
    """Translate a business exception into the structured failure payload."""
    http_status = ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    logger.info(f"Request refused with {exc.code}: {exc.message}")
    return Response({'success': False, 'error': exc.to_dict()}, status=http_status)


def invalid_request(serializer):
    return error_response(ValidationException("Invalid request data", serializer.errors))
