import json
from collections.abc import AsyncIterator
from typing import Protocol

import httpx

from diff_digest.core.config import settings
from diff_digest.core.exceptions import NotesClientError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import DiffPage

logger = get_logger(__name__)

GENERATE_PATH = "/api/v1/notes/generate"
DIFFS_PATH = "/api/v1/diffs"


class NotesTransport(Protocol):
    def stream_notes(self, subject_id: str, body: str) -> AsyncIterator[str]: ...


def _error_message(status_code: int, body: bytes) -> str:
    """에러 응답 본문의 error 필드, 없으면 상태 코드 기반 메시지"""
    message = f"Server error: {status_code}"
    try:
        data = json.loads(body)
    except ValueError:
        return message
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or message)
    return message


class NotesApiClient:
    """Diff Digest API용 비동기 HTTP 클라이언트"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.notes_api_url,
            timeout=timeout or settings.notes_request_timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def stream_notes(self, subject_id: str, body: str) -> AsyncIterator[str]:
        """노트 생성 요청 후 응답 본문을 텍스트 청크 단위로 반환

        Raises:
            NotesClientError: 2xx가 아닌 응답
            httpx.HTTPError: 전송 계층 오류
        """
        payload = {"subjectId": subject_id, "body": body}
        async with self._client.stream("POST", GENERATE_PATH, json=payload) as response:
            if response.is_error:
                message = _error_message(response.status_code, await response.aread())
                logger.warning(
                    "노트 생성 요청 실패 subject_id=%s status_code=%d",
                    subject_id,
                    response.status_code,
                )
                raise NotesClientError(response.status_code, message)

            async for chunk in response.aiter_text():
                if chunk:
                    yield chunk

    async def list_diffs(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int | None = None,
    ) -> DiffPage:
        """머지된 PR diff 목록 조회"""
        params = {
            "owner": owner,
            "repo": repo,
            "page": page,
            "per_page": per_page or settings.diffs_default_per_page,
        }
        response = await self._client.get(DIFFS_PATH, params=params)
        if response.is_error:
            message = _error_message(response.status_code, response.content)
            raise NotesClientError(response.status_code, message)
        return DiffPage.model_validate(response.json())
