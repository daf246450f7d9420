"""노트 생성 세션 컨트롤러

idle -> generating -> complete | errored, generating -> idle(취소) 상태를 관리한다.
세션당 동시에 하나의 생성만 진행되며 새 생성은 진행 중인 생성을 대체(취소)한다.
"""

import asyncio
from collections.abc import Callable
from contextlib import aclosing
from datetime import datetime, timezone

from diff_digest.client.cache import NotesCache
from diff_digest.client.demux import NoteStreamDemultiplexer
from diff_digest.client.transport import NotesApiClient, NotesTransport
from diff_digest.core.config import settings
from diff_digest.core.context import set_subject_id
from diff_digest.core.exceptions import CustomException
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import (
    CacheEntry,
    GenerationStatus,
    NotesResult,
    SessionState,
)
from diff_digest.infra.storage.kv import FileKeyValueStore

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred while generating notes"

StateListener = Callable[[SessionState], None]


class _Generation:
    """진행 중인 생성 하나의 취소 핸들"""

    def __init__(self, subject_id: str, body: str):
        self.subject_id = subject_id
        self.body = body
        self.cancelled = False
        self.task: asyncio.Task | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


def _notes_from_cache(entry: CacheEntry) -> NotesResult:
    return NotesResult(
        technical_notes=entry.technical_notes,
        user_notes=entry.user_notes,
        completed_at=datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc),
    )


class NotesSession:
    def __init__(
        self,
        transport: NotesTransport,
        cache: NotesCache,
        on_update: StateListener | None = None,
    ):
        self._transport = transport
        self._cache = cache
        self._on_update = on_update
        self._state = SessionState()
        self._current: _Generation | None = None
        self._selected_body: str | None = None

    @property
    def state(self) -> SessionState:
        """UI용 읽기 전용 상태 사본"""
        return self._state.model_copy(deep=True)

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        if self._on_update is not None:
            self._on_update(self.state)

    def _publish(self, generation: _Generation, **updates) -> None:
        # 대체되거나 취소된 생성은 상태를 바꾸지 못한다
        if generation is not self._current or generation.cancelled:
            return
        self._set_state(self._state.model_copy(update=updates))

    def _supersede(self) -> None:
        if self._current is not None:
            logger.info("진행 중인 생성 대체 subject_id=%s", self._current.subject_id)
            self._current.cancel()
            self._current = None

    def generate(
        self, subject_id: str, body: str, *, force: bool = False
    ) -> asyncio.Task | None:
        """노트 생성 시작

        유효한 캐시가 있고 force가 아니면 네트워크 호출 없이 바로 complete 상태가 된다.

        Returns:
            스트림 소비 태스크. 캐시에서 처리했으면 None
        """
        self._selected_body = body

        if not force:
            entry = self._cache.get(subject_id)
            if entry is not None:
                self._supersede()
                logger.info("캐시된 노트 사용 subject_id=%s", subject_id)
                self._set_state(
                    SessionState(
                        selected_subject_id=subject_id,
                        notes=_notes_from_cache(entry),
                        status=GenerationStatus.COMPLETE,
                        from_cache=True,
                    )
                )
                return None

        self._supersede()
        generation = _Generation(subject_id, body)
        self._current = generation
        self._set_state(
            SessionState(selected_subject_id=subject_id, status=GenerationStatus.GENERATING)
        )
        generation.task = asyncio.create_task(self._consume(generation))
        return generation.task

    def regenerate(self) -> asyncio.Task | None:
        """선택된 PR의 노트를 캐시를 무시하고 다시 생성"""
        subject_id = self._state.selected_subject_id
        if subject_id is None or not self._selected_body:
            return None
        return self.generate(subject_id, self._selected_body, force=True)

    def cancel(self) -> bool:
        """진행 중인 생성 취소. 부분 결과는 화면에 남지만 캐시에 저장되지 않는다"""
        if self._current is None:
            return False
        logger.info("노트 생성 취소 요청 subject_id=%s", self._current.subject_id)
        self._supersede()
        self._set_state(self._state.model_copy(update={"status": GenerationStatus.IDLE}))
        return True

    async def wait(self) -> SessionState:
        """진행 중인 생성이 끝날 때까지 대기 후 상태 반환"""
        while self._current is not None and self._current.task is not None:
            generation = self._current
            await asyncio.wait({generation.task})
            self._release(generation)
        return self.state

    async def aclose(self) -> None:
        """진행 중인 생성을 취소하고 종료를 기다림"""
        generation = self._current
        self.cancel()
        if generation is not None and generation.task is not None:
            await asyncio.wait({generation.task})

    async def _consume(self, generation: _Generation) -> None:
        set_subject_id(generation.subject_id)
        demux = NoteStreamDemultiplexer()

        try:
            stream = self._transport.stream_notes(generation.subject_id, generation.body)
            async with aclosing(stream) as chunks:
                async for chunk in chunks:
                    if generation.cancelled:
                        return
                    self._publish(generation, notes=demux.feed(chunk))
            notes = demux.finish()

        except asyncio.CancelledError:
            logger.info("노트 생성 취소됨 subject_id=%s", generation.subject_id)
            raise

        except Exception as e:
            message = e.message if isinstance(e, CustomException) else str(e)
            logger.warning(
                "노트 생성 실패 subject_id=%s error=%s",
                generation.subject_id,
                message or type(e).__name__,
            )
            self._publish(
                generation,
                notes=demux.partial(),
                status=GenerationStatus.ERRORED,
                error=message or DEFAULT_ERROR_MESSAGE,
            )
            self._release(generation)
            return

        if generation.cancelled:
            return

        if demux.error is not None:
            logger.warning("서버 에러 응답 subject_id=%s error=%s", generation.subject_id, demux.error)
            self._publish(
                generation,
                notes=NotesResult(),
                status=GenerationStatus.ERRORED,
                error=demux.error,
            )
            self._release(generation)
            return

        self._cache.store_notes(generation.subject_id, notes.technical_notes, notes.user_notes)
        self._publish(generation, notes=notes, status=GenerationStatus.COMPLETE)
        self._release(generation)
        logger.info(
            "노트 생성 완료 subject_id=%s technical_length=%d user_length=%d",
            generation.subject_id,
            len(notes.technical_notes),
            len(notes.user_notes),
        )

    def _release(self, generation: _Generation) -> None:
        if self._current is generation:
            self._current = None


def create_session(
    on_update: StateListener | None = None,
    transport: NotesTransport | None = None,
) -> NotesSession:
    """설정값으로 API 클라이언트와 파일 캐시를 구성한 세션 생성"""
    cache = NotesCache(
        FileKeyValueStore(settings.notes_cache_path),
        expiry_seconds=settings.notes_cache_ttl_seconds,
    )
    return NotesSession(transport or NotesApiClient(), cache, on_update=on_update)
