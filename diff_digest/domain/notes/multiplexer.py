"""서버 측 스트림 멀티플렉서

기술 노트와 사용자 노트를 순차 생성하여 하나의 출력 스트림에 기록한다.
출력 스트림은 성공, 실패, 클라이언트 연결 종료 어느 경우에도 정확히 한 번 닫힌다.
"""

import asyncio
from collections.abc import AsyncIterator

from pydantic import ValidationError as PydanticValidationError

from diff_digest.core.context import set_subject_id
from diff_digest.core.exceptions import CustomException, LLMError, ValidationError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.composer import NotePhase, compose_notes
from diff_digest.domain.notes.framing import BOUNDARY_FRAME, encode_error_payload
from diff_digest.domain.notes.schemas import GenerationRequest
from diff_digest.infra.llm.client import CompletionFn, stream_completion

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: subjectId and body"


class NoteStreamWriter:
    """StreamingResponse가 소비하는 큐 기반 출력 스트림

    close()는 여러 번 호출해도 한 번만 효과가 있고,
    닫힌 뒤의 write()는 아무 것도 하지 않는다.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False
        self.bytes_written = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, text: str) -> bool:
        """텍스트 조각 기록. 이미 닫혔으면 False"""
        if self._closed:
            return False
        data = text.encode(self._encoding)
        self.bytes_written += len(data)
        await self._queue.put(data)
        return True

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            while True:
                data = await self._queue.get()
                if data is None:
                    break
                yield data
        finally:
            # 소비자가 사라지면 이후 기록은 무시된다
            self._closed = True


def parse_generation_request(payload: dict) -> GenerationRequest:
    """요청 본문 검증

    Raises:
        ValidationError: subjectId 또는 body가 없거나 비어 있는 경우
    """
    try:
        return GenerationRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(MISSING_FIELDS_MESSAGE, detail=str(e)) from e


class NotesMultiplexer:
    """두 단계 생성 결과를 센티넬로 구분해 하나의 스트림에 기록"""

    def __init__(self, complete: CompletionFn = stream_completion):
        self._complete = complete

    async def run(self, payload: dict, writer: NoteStreamWriter) -> None:
        try:
            request = parse_generation_request(payload)
            set_subject_id(request.subject_id)
            logger.info("노트 생성 시작 diff_length=%d", len(request.body))

            composed = compose_notes(request.subject_id, request.body)

            await self._forward(composed.system, composed.technical, writer)
            if writer.closed:
                logger.info("클라이언트 연결 종료로 생성 중단 phase=technical")
                return

            await writer.write(BOUNDARY_FRAME)

            await self._forward(composed.system, composed.user, writer)
            if writer.closed:
                logger.info("클라이언트 연결 종료로 생성 중단 phase=user")
                return

            logger.info("노트 생성 완료 bytes=%d", writer.bytes_written)

        except ValidationError as e:
            logger.warning("노트 생성 요청 검증 실패 detail=%s", e.detail)
            await writer.write(encode_error_payload({"error": e.message}))

        except CustomException as e:
            logger.error("노트 생성 실패 error_code=%s detail=%s", e.error_code, e.detail)
            await writer.write(encode_error_payload(e.to_payload()))

        except Exception as e:
            logger.exception("노트 생성 중 예기치 않은 오류")
            await writer.write(encode_error_payload({"error": str(e) or "An unknown error occurred"}))

        finally:
            await writer.close()

    async def _forward(self, system: str, phase: NotePhase, writer: NoteStreamWriter) -> None:
        """한 단계의 조각을 도착 순서대로 전달. 스트림이 닫히면 업스트림 소비도 중단"""
        fragments = self._complete(system, phase.instruction, phase.params)
        try:
            async for fragment in fragments:
                if not await writer.write(fragment):
                    break
        except Exception as e:
            raise LLMError(detail=f"{phase.channel.value}: {e}") from e
        finally:
            aclose = getattr(fragments, "aclose", None)
            if aclose is not None:
                await aclose()
