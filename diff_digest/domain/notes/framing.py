"""두 노트 스트림을 하나의 바이트 스트림으로 구분하는 와이어 포맷

본문은 기술 노트 조각, 경계 센티넬, 사용자 노트 조각 순서로 구성된다.
사전 검증 실패나 생성 오류는 ``{"error": ...}`` JSON 객체로 기록된다.
"""

import json

BOUNDARY_SENTINEL = "===MARKETING_NOTES==="
BOUNDARY_FRAME = f"\n\n{BOUNDARY_SENTINEL}\n\n"

DEVELOPER_HEADER = "DEVELOPER NOTES"
MARKETING_HEADER = "MARKETING NOTES"

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


def encode_error_payload(payload: dict) -> str:
    """에러 객체를 스트림 본문용 JSON 문자열로 변환"""
    return json.dumps(payload, ensure_ascii=False)


def parse_error_payload(text: str) -> str | None:
    """본문 전체가 에러 객체이면 에러 메시지 반환, 아니면 None"""
    candidate = text.strip()
    if not candidate.startswith("{") or not candidate.endswith("}"):
        return None
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return None


def sentinel_prefix_length(text: str, sentinel: str = BOUNDARY_SENTINEL) -> int:
    """text 끝부분 중 센티넬 접두사와 일치하는 가장 긴 길이

    청크 경계에서 잘린 센티넬을 다음 청크까지 보류하는 데 사용한다.
    """
    for size in range(min(len(text), len(sentinel) - 1), 0, -1):
        if sentinel.startswith(text[-size:]):
            return size
    return 0


def strip_channel_header(text: str, header: str) -> str:
    """노트 앞의 채널 헤더 줄(예: ``DEVELOPER NOTES:``) 제거"""
    stripped = text.lstrip()
    first_line, newline, rest = stripped.partition("\n")
    if first_line.strip().strip("*#: ").upper() == header:
        return rest.lstrip("\n") if newline else ""
    return text
