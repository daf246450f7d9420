"""Diff Digest API 클라이언트 테스트"""

import json

import httpx
import pytest

from diff_digest.client.transport import GENERATE_PATH, NotesApiClient, _error_message
from diff_digest.core.exceptions import NotesClientError


def _api_client(handler) -> NotesApiClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return NotesApiClient(client=client)


class TestErrorMessage:
    """_error_message 함수 테스트"""

    @pytest.mark.parametrize(
        "body,expected",
        [
            (b'{"error": "boom"}', "boom"),
            (b'{"message": "bad input"}', "bad input"),
            (b"<html>oops</html>", "Server error: 500"),
            (b"[1]", "Server error: 500"),
            (b"", "Server error: 500"),
        ],
    )
    def test_messages(self, body, expected):
        assert _error_message(500, body) == expected


class TestStreamNotes:
    """stream_notes 테스트"""

    @pytest.mark.asyncio
    async def test_posts_payload_and_yields_chunks(self):
        """subjectId/body를 전송하고 본문을 청크로 반환"""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="DEVELOPER NOTES:\nAdded x.")

        api = _api_client(handler)
        chunks = [chunk async for chunk in api.stream_notes("42", "diff --git a/x b/x")]
        await api.aclose()

        assert "".join(chunks) == "DEVELOPER NOTES:\nAdded x."
        assert requests[0].url.path == GENERATE_PATH
        assert json.loads(requests[0].content) == {"subjectId": "42", "body": "diff --git a/x b/x"}

    @pytest.mark.asyncio
    async def test_error_status(self):
        """2xx가 아니면 NotesClientError"""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "unavailable"})

        api = _api_client(handler)
        with pytest.raises(NotesClientError) as exc_info:
            [chunk async for chunk in api.stream_notes("42", "diff")]
        await api.aclose()

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "unavailable"

    @pytest.mark.asyncio
    async def test_error_status_without_body(self):
        """본문이 없는 오류 응답"""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        api = _api_client(handler)
        with pytest.raises(NotesClientError, match="Server error: 500"):
            [chunk async for chunk in api.stream_notes("42", "diff")]
        await api.aclose()


class TestListDiffs:
    """list_diffs 테스트"""

    @pytest.mark.asyncio
    async def test_parses_page(self):
        """응답을 DiffPage로 변환"""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "diffs": [
                        {"id": "42", "description": "Add x", "diff": "d", "url": "u"},
                    ],
                    "nextPage": None,
                    "currentPage": 2,
                    "perPage": 5,
                },
            )

        api = _api_client(handler)
        page = await api.list_diffs("user", "repo", page=2, per_page=5)
        await api.aclose()

        assert page.diffs[0].id == "42"
        assert page.next_page is None
        assert page.current_page == 2
        assert requests[0].url.params["owner"] == "user"
        assert requests[0].url.params["per_page"] == "5"

    @pytest.mark.asyncio
    async def test_error_status(self):
        """오류 응답은 NotesClientError"""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"error_code": "GITHUB_API_ERROR", "message": "fail"})

        api = _api_client(handler)
        with pytest.raises(NotesClientError, match="fail"):
            await api.list_diffs("user", "repo")
        await api.aclose()
