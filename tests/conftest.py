"""테스트 공통 fixture"""

from unittest.mock import MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from diff_digest.client.cache import NotesCache
from diff_digest.infra.storage.kv import MemoryKeyValueStore
from diff_digest.main import app

SAMPLE_DIFF = """diff --git a/x b/x
index 83db48f..bf269f4 100644
--- a/x
+++ b/x
@@ -1,2 +1,3 @@
 existing line
+added x
"""


class FakeClock:
    """epoch 밀리초를 반환하는 조작 가능한 시계"""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_completion(*phases: list):
    """호출 순서대로 단계별 조각을 내보내는 스텁 완성 함수

    조각 자리에 예외 인스턴스를 넣으면 해당 위치에서 예외를 발생시킨다.
    """
    calls = []

    async def complete(system, user, params):
        calls.append((system, user, params))
        for fragment in phases[len(calls) - 1]:
            if isinstance(fragment, Exception):
                raise fragment
            yield fragment

    complete.calls = calls
    return complete


@pytest.fixture
def sample_diff() -> str:
    """테스트용 diff"""
    return SAMPLE_DIFF


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """메모리 키/값 저장소"""
    return MemoryKeyValueStore()


@pytest.fixture
def notes_cache(memory_store, fake_clock) -> NotesCache:
    """30분 만료 캐시"""
    return NotesCache(memory_store, expiry_seconds=30 * 60, clock=fake_clock)


@pytest.fixture
def async_client():
    """비동기 HTTP 클라이언트"""
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def mock_github_response():
    """GitHub API 응답 mock 생성"""
    mock = MagicMock()
    mock.raise_for_status = MagicMock()
    mock.links = {}
    return mock


@pytest.fixture
def create_http_error():
    """HTTPStatusError 생성 helper"""

    def _create(status_code: int, message: str = "Error"):
        return httpx.HTTPStatusError(
            message,
            request=httpx.Request("GET", "https://test.com"),
            response=httpx.Response(status_code),
        )

    return _create


@pytest.fixture
def completion_factory():
    """스텁 완성 함수 생성 helper"""
    return make_completion
