# heartline/common/exceptions.py
import logging

from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    PermissionDenied,
)
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger(__name__)


class DomainError(APIException):
    """서비스 레이어 에러 공통 부모. code/message 는 응답 envelope 로 그대로 나감."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"
    default_detail = "bad request"

    def __init__(self, message=None, code=None):
        self.code = code or self.default_code
        self.message = message or self.default_detail
        super().__init__(detail=self.message, code=self.code)


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    default_detail = "resource not found"


class ValidationError(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "VALIDATION_ERROR"
    default_detail = "invalid input"

    def __init__(self, message=None, code=None, fields=None):
        self.fields = fields or {}
        super().__init__(message=message, code=code)


class AuthorizationError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_detail = "not allowed"


def _envelope(code, message, fields=None):
    error = {"code": code, "message": message}
    if fields:
        error["fields"] = fields
    return {"success": False, "data": None, "error": error}


def custom_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        # DRF 가 모르는 예외 -> 500, 로그만 남기고 django 쪽으로 넘김
        logger.error("unhandled error in %s", context.get("view"), exc_info=exc)
        return response

    if isinstance(exc, ValidationError):
        response.data = _envelope(exc.code, exc.message, exc.fields)
    elif isinstance(exc, DRFValidationError):
        # serializer 검증 실패도 422 로 통일
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        response.data = _envelope("VALIDATION_ERROR", "invalid input", exc.detail)
    elif isinstance(exc, DomainError):
        response.data = _envelope(exc.code, exc.message)
    elif isinstance(exc, (InvalidToken, TokenError)):
        response.data = _envelope("INVALID_TOKEN", "Invalid token")
    elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        response.data = _envelope("UNAUTHORIZED", "Authorization header missing")
    elif isinstance(exc, PermissionDenied):
        response.data = _envelope("FORBIDDEN", "Permission denied")
    else:
        response.data = _envelope(
            getattr(exc, "default_code", "ERROR").upper(), str(exc)
        )

    return response
