"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Every domain failure is an ``AppError`` subclass keyed by an ``ErrorCode``;
the HTTP status is looked up from ``STATUS_BY_CODE`` instead of being
scattered across call sites. A single handler in ``cloudarc.main`` renders
``{"detail": ..., "code": ...}`` for all of them.

Usage:
    from cloudarc.utils.exceptions import NotFoundError, EmailTakenError
    raise NotFoundError("Task not found", code=ErrorCode.TASK_NOT_FOUND)
    raise EmailTakenError()
"""

from enum import StrEnum

from fastapi import HTTPException, status


class ErrorCode(StrEnum):
    """기계 판독용 오류 코드.

    Machine-readable error codes returned in the ``code`` field.
    """

    INVALID_CREDENTIALS = "AUTH_001"
    EMAIL_TAKEN = "AUTH_002"
    USERNAME_TAKEN = "AUTH_003"
    TOKEN_INVALID = "AUTH_004"
    TOKEN_REUSE_DETECTED = "AUTH_005"
    UNAUTHENTICATED = "AUTH_006"
    RESET_TOKEN_INVALID = "AUTH_007"
    FORBIDDEN = "FORBIDDEN_001"
    VALIDATION_FAILED = "VALIDATION_001"
    NOT_FOUND = "NOT_FOUND_001"
    USER_NOT_FOUND = "NOT_FOUND_002"
    TASK_NOT_FOUND = "NOT_FOUND_003"
    ROUTE_NOT_FOUND = "NOT_FOUND_004"
    SERVER_ERROR = "SERVER_001"


# 오류 코드 -> HTTP 상태 코드 매핑 (Error code to transport status mapping)
STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.EMAIL_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.USERNAME_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.TOKEN_REUSE_DETECTED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.RESET_TOKEN_INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TASK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ROUTE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SERVER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(HTTPException):
    """애플리케이션 예외의 공통 부모 클래스.

    Base class for all domain errors. Subclasses set ``code`` and
    ``default_detail``; the status code comes from ``STATUS_BY_CODE``.

    Args:
        detail: 오류 메시지 (Error message, defaults to the class message)
        code: 오류 코드 재정의 (Optional code override)
    """

    code: ErrorCode = ErrorCode.SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, code: ErrorCode | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(
            status_code=STATUS_BY_CODE[self.code],
            detail=detail or self.default_detail,
        )

    @property
    def public_code(self) -> ErrorCode:
        """클라이언트에 노출되는 코드 (Code shown to the client)."""
        return self.code


class ConflictError(AppError):
    """409 Conflict 예외 - 중복 리소스 생성 시도 시 사용."""

    code = ErrorCode.EMAIL_TAKEN
    default_detail = "Resource already exists"


class EmailTakenError(ConflictError):
    code = ErrorCode.EMAIL_TAKEN
    default_detail = "Email is already registered"


class UsernameTakenError(ConflictError):
    code = ErrorCode.USERNAME_TAKEN
    default_detail = "Username is already taken"


class InvalidCredentialsError(AppError):
    """401 예외 - 이메일/비밀번호 불일치.

    Raised for both an unknown email and a wrong password, with the same
    message, so the response does not reveal which one failed.
    """

    code = ErrorCode.INVALID_CREDENTIALS
    default_detail = "Invalid email or password"


class TokenInvalidError(AppError):
    """401 예외 - 위조, 손상, 미등록, 폐기된 토큰.

    Raised for malformed, forged, unknown or revoked tokens.
    """

    code = ErrorCode.TOKEN_INVALID
    default_detail = "Invalid or expired token"


class TokenExpiredError(TokenInvalidError):
    """만료된 토큰. 클라이언트에는 TokenInvalidError와 동일하게 보임.

    Expired token. Rendered exactly like ``TokenInvalidError`` so the client
    cannot tell an expired token from a forged one.
    """

    @property
    def public_code(self) -> ErrorCode:
        return ErrorCode.TOKEN_INVALID


class TokenReuseDetectedError(TokenInvalidError):
    """폐기된 리프레시 토큰 재사용 감지.

    Raised after a revoked refresh token is presented again and its whole
    family has been revoked. Logged as a security event, but the client sees
    the same generic invalid-token response.
    """

    code = ErrorCode.TOKEN_REUSE_DETECTED

    @property
    def public_code(self) -> ErrorCode:
        return ErrorCode.TOKEN_INVALID


class ResetTokenInvalidError(AppError):
    """400 예외 - 재설정 토큰이 없거나, 만료되었거나, 이미 사용됨."""

    code = ErrorCode.RESET_TOKEN_INVALID
    default_detail = "Invalid or expired password reset token"


class UnauthenticatedError(AppError):
    """401 Unauthorized 예외 - 인증 정보 누락 시 사용.

    Raised when a protected route is called without a bearer credential.
    """

    code = ErrorCode.UNAUTHENTICATED
    default_detail = "Authentication required"


class ForbiddenError(AppError):
    """403 Forbidden 예외 - 권한 부족 시 사용.

    Raised when the authenticated user lacks the required role
    (e.g. a regular user calling an admin-only route).
    """

    code = ErrorCode.FORBIDDEN
    default_detail = "Insufficient permissions"


class ValidationFailedError(AppError):
    """422 예외 - 요청 본문/쿼리 검증 실패 (Rendered for every request validation error)."""

    code = ErrorCode.VALIDATION_FAILED
    default_detail = "Validation failed"


class NotFoundError(AppError):
    """404 Not Found 예외 - 요청한 리소스를 찾을 수 없을 때 사용.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
        code: 리소스별 코드 (Resource-specific code, e.g. TASK_NOT_FOUND)
    """

    code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class NotificationError(Exception):
    """알림 발송 실패.

    Raised by a notifier when a message could not be handed to the mail
    relay. Not an HTTP error: callers decide whether to surface it.
    """
