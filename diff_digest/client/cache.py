import json
import time
from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError

from diff_digest.core.exceptions import StorageError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import CacheEntry
from diff_digest.infra.storage.kv import KeyValueStore

logger = get_logger(__name__)

CACHE_STORAGE_KEY = "diff-digest-notes-cache"
DEFAULT_EXPIRY_SECONDS = 60 * 60


def now_ms() -> int:
    """현재 시각 epoch 밀리초"""
    return int(time.time() * 1000)


class NotesCache:
    """PR별 완료된 노트 쌍 캐시

    모든 항목은 저장소의 키 하나에 ``subject_id -> entry`` JSON 매핑으로 저장된다.
    만료된 항목은 삭제하지 않고 조회 시 없는 것으로 취급한다.
    저장소 오류는 로그만 남기고 캐시 미스 또는 no-op으로 처리한다.
    """

    def __init__(
        self,
        store: KeyValueStore,
        expiry_seconds: float = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], int] = now_ms,
        storage_key: str = CACHE_STORAGE_KEY,
    ):
        self._store = store
        self._expiry_ms = int(expiry_seconds * 1000)
        self._clock = clock
        self._storage_key = storage_key

    @property
    def expiry_ms(self) -> int:
        return self._expiry_ms

    def _load(self) -> dict[str, dict]:
        try:
            raw = self._store.get(self._storage_key)
        except StorageError as e:
            logger.warning("캐시 읽기 실패 detail=%s", e.detail)
            return {}
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("캐시 데이터 파싱 실패, 빈 캐시로 처리")
            return {}
        return data if isinstance(data, dict) else {}

    def is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > self._expiry_ms

    def get(self, subject_id: str) -> CacheEntry | None:
        """만료되지 않은 항목 반환. 없거나 만료됐으면 None"""
        raw_entry = self._load().get(subject_id)
        if raw_entry is None:
            return None

        try:
            entry = CacheEntry.model_validate({"subjectId": subject_id, **raw_entry})
        except (PydanticValidationError, TypeError):
            logger.warning("캐시 항목 형식 오류 subject_id=%s", subject_id)
            return None

        if self.is_expired(entry):
            logger.debug("캐시 만료 subject_id=%s", subject_id)
            return None
        return entry

    def has(self, subject_id: str) -> bool:
        return self.get(subject_id) is not None

    def put(self, entry: CacheEntry) -> None:
        """항목 저장 - 전체 레코드를 읽고 수정해 다시 기록 (last-writer-wins)"""
        data = self._load()
        data[entry.subject_id] = entry.model_dump(by_alias=True, exclude={"subject_id"})

        try:
            self._store.set(self._storage_key, json.dumps(data, ensure_ascii=False))
        except StorageError as e:
            logger.warning("캐시 저장 실패 subject_id=%s detail=%s", entry.subject_id, e.detail)
            return
        logger.debug("캐시 저장 subject_id=%s", entry.subject_id)

    def store_notes(self, subject_id: str, technical_notes: str, user_notes: str) -> CacheEntry:
        """현재 시각으로 항목을 만들어 저장"""
        entry = CacheEntry(
            subject_id=subject_id,
            technical_notes=technical_notes,
            user_notes=user_notes,
            timestamp=self._clock(),
        )
        self.put(entry)
        return entry
