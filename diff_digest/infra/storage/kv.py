"""영속 키/값 저장소

브라우저 localStorage와 같은 계약: 문자열 키에 문자열 값을 저장하고
프로세스를 재시작해도 값이 유지된다.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from diff_digest.core.exceptions import StorageError
from diff_digest.core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """프로세스 메모리 저장소 - 테스트 및 임시 세션용"""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileKeyValueStore:
    """JSON 파일 하나에 모든 키를 저장하는 저장소

    쓰기는 임시 파일에 기록한 뒤 교체하므로 중간에 중단돼도 기존 파일이 깨지지 않는다.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(detail=f"{self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError(detail=f"{self.path}: JSON 파싱 실패") from e
        if not isinstance(data, dict):
            raise StorageError(detail=f"{self.path}: 객체 형식이 아님")
        return data

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            logger.warning("손상된 저장소 파일을 새로 작성 path=%s", str(self.path))
            data = {}
        data[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(detail=f"{self.path}: {e}") from e
