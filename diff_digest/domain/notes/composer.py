from pydantic import BaseModel

from diff_digest.core.config import settings
from diff_digest.domain.notes.prompts import (
    DEVELOPER_FOCUS,
    DEVELOPER_NOTES_GUIDE,
    MARKETING_FOCUS,
    MARKETING_NOTES_GUIDE,
    NOTES_HUMAN,
    NOTES_SYSTEM,
)
from diff_digest.domain.notes.schemas import Channel
from diff_digest.infra.llm.client import CompletionParams


class NotePhase(BaseModel):
    """한 단계(채널)의 생성 지시문과 파라미터"""

    channel: Channel
    instruction: str
    params: CompletionParams


class ComposedNotes(BaseModel):
    """두 단계가 공유하는 시스템 지시문과 단계별 지시문"""

    system: str
    technical: NotePhase
    user: NotePhase

    @property
    def phases(self) -> tuple[NotePhase, NotePhase]:
        """생성 순서 - 기술 노트가 항상 먼저"""
        return self.technical, self.user


def compose_notes(
    subject_id: str,
    diff: str,
    *,
    max_tokens: int | None = None,
    technical_temperature: float | None = None,
    user_temperature: float | None = None,
) -> ComposedNotes:
    """PR 번호와 diff로 두 노트의 지시문 생성

    두 지시문은 동일한 diff 전체를 포함하고 요청하는 노트 종류만 다르다.
    전체 토큰 예산은 두 단계에 균등하게 나눈다.

    Args:
        subject_id: PR 번호
        diff: diff 원문
        max_tokens: 두 단계 합산 출력 토큰 예산
        technical_temperature: 기술 노트 temperature
        user_temperature: 사용자 노트 temperature

    Returns:
        시스템 지시문과 단계별 지시문
    """
    total_tokens = max_tokens if max_tokens is not None else settings.notes_max_tokens
    phase_tokens = max(total_tokens // 2, 1)
    if technical_temperature is None:
        technical_temperature = settings.notes_technical_temperature
    if user_temperature is None:
        user_temperature = settings.notes_user_temperature

    base = NOTES_HUMAN.format(
        subject_id=subject_id,
        developer_guide=DEVELOPER_NOTES_GUIDE,
        marketing_guide=MARKETING_NOTES_GUIDE,
        diff=diff,
    )

    return ComposedNotes(
        system=NOTES_SYSTEM,
        technical=NotePhase(
            channel=Channel.TECHNICAL,
            instruction=base + DEVELOPER_FOCUS,
            params=CompletionParams(
                temperature=technical_temperature,
                max_tokens=phase_tokens,
                session_id=subject_id,
                tags=["notes", Channel.TECHNICAL.value],
            ),
        ),
        user=NotePhase(
            channel=Channel.USER,
            instruction=base + MARKETING_FOCUS,
            params=CompletionParams(
                temperature=user_temperature,
                max_tokens=phase_tokens,
                session_id=subject_id,
                tags=["notes", Channel.USER.value],
            ),
        ),
    )
