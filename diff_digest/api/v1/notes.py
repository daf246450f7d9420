import asyncio
import json
from asyncio import create_task

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.framing import TEXT_CONTENT_TYPE
from diff_digest.domain.notes.multiplexer import NotesMultiplexer, NoteStreamWriter
from diff_digest.infra.llm.client import stream_completion

router = APIRouter(prefix="/notes", tags=["notes"])
logger = get_logger(__name__)

DISCONNECT_POLL_INTERVAL = 0.5

_background_tasks: set = set()


def get_multiplexer() -> NotesMultiplexer:
    """멀티플렉서 생성 - 테스트에서 교체"""
    return NotesMultiplexer(complete=stream_completion)


async def _read_payload(request: Request) -> dict:
    """요청 본문을 dict로 파싱. JSON이 아니면 빈 dict"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("요청 본문 JSON 파싱 실패")
        return {}
    return payload if isinstance(payload, dict) else {}


async def _watch_disconnect(request: Request, writer: NoteStreamWriter) -> None:
    """클라이언트 연결이 끊기면 출력 스트림을 닫아 생성 중단

    응답 본문 소비가 시작되기 전에 연결이 끊긴 경우도 처리한다.
    """
    while not writer.closed:
        if await request.is_disconnected():
            logger.info("클라이언트 연결 종료 감지")
            await writer.close()
            return
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)


async def _run_generation(
    request: Request,
    multiplexer: NotesMultiplexer,
    payload: dict,
    writer: NoteStreamWriter,
) -> None:
    watcher = create_task(_watch_disconnect(request, writer))
    try:
        await multiplexer.run(payload, writer)
    finally:
        watcher.cancel()


@router.post("/generate")
async def generate_notes(request: Request) -> StreamingResponse:
    """기술 노트와 사용자 노트를 하나의 text/plain 스트림으로 생성

    검증 실패도 스트리밍 시작 전 단일 JSON 에러 객체로 200 응답한다.
    """
    payload = await _read_payload(request)
    writer = NoteStreamWriter()

    task = create_task(_run_generation(request, get_multiplexer(), payload, writer))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return StreamingResponse(
        writer,
        media_type=TEXT_CONTENT_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
