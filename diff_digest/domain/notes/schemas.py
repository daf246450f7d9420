from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from diff_digest.domain.notes.framing import DEVELOPER_HEADER, MARKETING_HEADER, strip_channel_header


class Channel(str, Enum):
    """노트 채널 - 기술(개발자)용과 사용자(마케팅)용"""

    TECHNICAL = "technical"
    USER = "user"


class GenerationRequest(BaseModel):
    """릴리즈 노트 생성 요청"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    subject_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("subjectId", "prId", "subject_id"),
    )
    body: str = Field(
        min_length=1,
        validation_alias=AliasChoices("body", "diff"),
    )


class NotesResult(BaseModel):
    """생성 중이거나 완료된 노트 쌍"""

    technical_notes: str = ""
    user_notes: str = ""
    completed_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.technical_notes and not self.user_notes

    def technical_display(self) -> str:
        """채널 헤더를 제거한 기술 노트"""
        return strip_channel_header(self.technical_notes, DEVELOPER_HEADER)

    def user_display(self) -> str:
        """채널 헤더를 제거한 사용자 노트"""
        return strip_channel_header(self.user_notes, MARKETING_HEADER)


class CacheEntry(BaseModel):
    """캐시에 저장되는 완료된 노트 쌍. timestamp는 epoch 밀리초"""

    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(alias="subjectId")
    technical_notes: str = Field(alias="developerNotes")
    user_notes: str = Field(alias="marketingNotes")
    timestamp: int


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERRORED = "errored"


class SessionState(BaseModel):
    """UI에 노출되는 세션 상태"""

    selected_subject_id: str | None = None
    notes: NotesResult = Field(default_factory=NotesResult)
    status: GenerationStatus = GenerationStatus.IDLE
    error: str | None = None
    from_cache: bool = False

    @property
    def generating(self) -> bool:
        return self.status == GenerationStatus.GENERATING

    @property
    def complete(self) -> bool:
        return self.status == GenerationStatus.COMPLETE


class DiffItem(BaseModel):
    """머지된 PR 하나의 diff"""

    id: str
    description: str
    diff: str
    url: str


class DiffPage(BaseModel):
    """diff 목록 한 페이지"""

    model_config = ConfigDict(populate_by_name=True)

    diffs: list[DiffItem]
    next_page: int | None = Field(default=None, alias="nextPage")
    current_page: int = Field(alias="currentPage")
    per_page: int = Field(alias="perPage")
