import os
from collections.abc import AsyncIterator, Callable

from langchain_core.messages import BaseMessageChunk, HumanMessage, SystemMessage
from langfuse.langchain import CallbackHandler
from pydantic import BaseModel, Field

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.infra.llm.factory import get_notes_client

logger = get_logger(__name__)

if settings.langfuse_public_key:
    os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
if settings.langfuse_secret_key:
    os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
if settings.langfuse_base_url:
    os.environ["LANGFUSE_HOST"] = settings.langfuse_base_url


class CompletionParams(BaseModel):
    """스트리밍 완성 호출 파라미터"""

    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)
    session_id: str | None = None
    tags: list[str] = Field(default_factory=list)


CompletionFn = Callable[[str, str, CompletionParams], AsyncIterator[str]]


def get_langfuse_handler() -> CallbackHandler | None:
    """Langfuse 콜백 핸들러 반환"""
    if not settings.langfuse_public_key or not settings.langfuse_secret_key:
        return None

    return CallbackHandler()


def chunk_text(chunk: BaseMessageChunk) -> str:
    """메시지 청크에서 텍스트 조각 추출

    OpenAI 계열은 문자열, Gemini는 파트 리스트로 content를 반환한다.
    """
    content = chunk.content
    if isinstance(content, str):
        return content

    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


async def stream_completion(
    system_prompt: str,
    user_prompt: str,
    params: CompletionParams,
) -> AsyncIterator[str]:
    """채팅 완성 결과를 텍스트 조각 단위로 스트리밍

    Args:
        system_prompt: 시스템 지시문
        user_prompt: 사용자 지시문 (diff 포함)
        params: temperature, max_tokens 등 생성 파라미터

    Yields:
        도착 순서대로의 비어 있지 않은 텍스트 조각
    """
    client = get_notes_client()
    llm = client.get_chat_model(temperature=params.temperature, max_tokens=params.max_tokens)

    langfuse_handler = get_langfuse_handler()
    config = {
        "callbacks": [langfuse_handler] if langfuse_handler else [],
        "metadata": {
            "langfuse_session_id": params.session_id,
            "langfuse_tags": params.tags,
        },
    }

    messages = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_prompt),
    ]

    logger.debug(
        "스트리밍 완성 요청 model=%s temperature=%.1f max_tokens=%d",
        client.get_model_name(),
        params.temperature,
        params.max_tokens,
    )

    fragments = 0
    async for chunk in llm.astream(messages, config=config):
        text = chunk_text(chunk)
        if text:
            fragments += 1
            yield text

    logger.debug("스트리밍 완성 종료 fragments=%d", fragments)
