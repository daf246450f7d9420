from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse

from diff_digest.core.config import settings


class ErrorCode(str, Enum):
    """에러 코드 열거형"""

    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    LLM_ERROR = "LLM_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    STORAGE_ERROR = "STORAGE_ERROR"
    NOTES_API_ERROR = "NOTES_API_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CustomException(Exception):
    def __init__(
        self,
        status_code: int,
        error_code: ErrorCode | str,
        message: str,
        detail: str | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_payload(self) -> dict:
        """스트림 본문에 기록할 에러 페이로드"""
        payload = {"error": self.message}
        if self.detail and not settings.is_production:
            payload["detail"] = self.detail
        return payload


class GitHubAPIError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=502,
            error_code=ErrorCode.GITHUB_API_ERROR,
            message="GitHub API 호출에 실패했습니다",
            detail=detail,
        )


class LLMError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=502,
            error_code=ErrorCode.LLM_ERROR,
            message="LLM 호출에 실패했습니다",
            detail=detail,
        )


class ValidationError(CustomException):
    def __init__(self, message: str = "입력값이 올바르지 않습니다", detail: str | None = None):
        super().__init__(
            status_code=400,
            error_code=ErrorCode.INVALID_INPUT,
            message=message,
            detail=detail,
        )


class StorageError(CustomException):
    def __init__(self, detail: str | None = None):
        super().__init__(
            status_code=500,
            error_code=ErrorCode.STORAGE_ERROR,
            message="로컬 저장소 접근에 실패했습니다",
            detail=detail,
        )


class NotesClientError(CustomException):
    def __init__(self, status_code: int, message: str):
        super().__init__(
            status_code=status_code,
            error_code=ErrorCode.NOTES_API_ERROR,
            message=message,
        )


def register_exception_handlers(app):
    @app.exception_handler(CustomException)
    async def custom_exception_handler(request: Request, exc: CustomException):
        content = {
            "error_code": exc.error_code,
            "message": exc.message,
        }
        if exc.detail and not settings.is_production:
            content["detail"] = exc.detail

        return JSONResponse(
            status_code=exc.status_code,
            content=content,
        )
