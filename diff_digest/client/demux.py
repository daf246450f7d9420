"""클라이언트 측 스트림 디멀티플렉서

수신한 텍스트 청크를 경계 센티넬 기준으로 기술 노트와 사용자 노트 버퍼로 나눈다.
센티넬이 두 청크에 걸쳐 잘려 도착해도 인식한다.
"""

from datetime import datetime, timezone

from diff_digest.domain.notes.framing import (
    BOUNDARY_SENTINEL,
    parse_error_payload,
    sentinel_prefix_length,
)
from diff_digest.domain.notes.schemas import Channel, NotesResult


class NoteStreamDemultiplexer:
    def __init__(self, sentinel: str = BOUNDARY_SENTINEL):
        self._sentinel = sentinel
        self.mode = Channel.TECHNICAL
        self._technical: list[str] = []
        self._user: list[str] = []
        # 센티넬 앞부분일 수 있어 아직 기술 버퍼에 넣지 않은 꼬리
        self._pending = ""
        self._finished = False
        self.error: str | None = None

    @property
    def technical_notes(self) -> str:
        return "".join(self._technical)

    @property
    def user_notes(self) -> str:
        return "".join(self._user)

    def feed(self, chunk: str) -> NotesResult:
        """청크 하나를 처리하고 현재까지의 (미완성) 결과 반환"""
        if self._finished:
            raise RuntimeError("finish() 이후에는 청크를 처리할 수 없습니다")

        if self.mode == Channel.USER:
            self._append_user(chunk)
            return self.snapshot()

        text = self._pending + chunk
        self._pending = ""

        index = text.find(self._sentinel)
        if index >= 0:
            self._technical.append(text[:index])
            self.mode = Channel.USER
            self._append_user(text[index + len(self._sentinel) :])
            return self.snapshot()

        held = sentinel_prefix_length(text, self._sentinel)
        if held:
            self._pending = text[-held:]
            text = text[:-held]
        self._technical.append(text)
        return self.snapshot()

    def _append_user(self, text: str) -> None:
        # 센티넬 뒤의 빈 줄은 구분자의 일부
        if not self._user:
            text = text.lstrip("\r\n")
            if not text:
                return
        self._user.append(text)

    def finish(self) -> NotesResult:
        """스트림 종료 처리 - 보류 중인 꼬리를 반영하고 완료 시각 기록"""
        if not self._finished:
            self._finished = True
            if self._pending:
                self._technical.append(self._pending)
                self._pending = ""
            if self.mode == Channel.TECHNICAL:
                self.error = parse_error_payload(self.technical_notes)
        return self.snapshot(completed_at=datetime.now(timezone.utc))

    def partial(self) -> NotesResult:
        """보류 중인 꼬리까지 포함한 중간 결과. 스트림이 중간에 끊긴 경우에 사용"""
        return NotesResult(
            technical_notes=self.technical_notes + self._pending,
            user_notes=self.user_notes,
        )

    def snapshot(self, completed_at: datetime | None = None) -> NotesResult:
        return NotesResult(
            technical_notes=self.technical_notes,
            user_notes=self.user_notes,
            completed_at=completed_at,
        )
