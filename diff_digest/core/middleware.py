"""
HTTP 요청 로깅 미들웨어

- 요청 시작 시 request_id 생성
- 요청/응답 메타데이터 자동 로깅
- 스트리밍 응답은 본문 전송이 끝난 시점에 전송 바이트와 소요 시간 기록
- X-Request-ID 응답 헤더 추가
"""

import time
from collections.abc import AsyncIterator

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from diff_digest.core.context import clear_context, set_request_id
from diff_digest.core.logging import get_logger

logger = get_logger(__name__)

SKIP_PATHS = {"/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """HTTP 요청 로깅 및 request_id 관리 미들웨어"""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        request_id = set_request_id(request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()

        logger.info(
            "요청 시작",
            method=request.method,
            path=request.url.path,
            client_ip=self._get_client_ip(request),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "요청 실패",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=_elapsed_ms(start_time),
            )
            raise
        finally:
            clear_context()

        logger.info(
            "응답 헤더 전송",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start_time),
        )

        response.headers["X-Request-ID"] = request_id
        body_iterator = getattr(response, "body_iterator", None)
        if body_iterator is not None:
            response.body_iterator = self._track_body(
                body_iterator, request_id, request.url.path, start_time
            )
        return response

    async def _track_body(
        self,
        body_iterator: AsyncIterator[bytes],
        request_id: str,
        path: str,
        start_time: float,
    ) -> AsyncIterator[bytes]:
        """본문 전송 완료/중단 시점 기록"""
        sent_bytes = 0
        completed = False
        try:
            async for chunk in body_iterator:
                sent_bytes += len(chunk)
                yield chunk
            completed = True
        finally:
            logger.info(
                "응답 본문 전송 종료" if completed else "응답 본문 전송 중단",
                request_id=request_id,
                path=path,
                sent_bytes=sent_bytes,
                duration_ms=_elapsed_ms(start_time),
            )

    def _get_client_ip(self, request: Request) -> str:
        """클라이언트 IP 추출"""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
