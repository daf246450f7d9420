from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from diff_digest.core.config import settings
from diff_digest.infra.llm.base import BaseLLMClient


class OpenAIClient(BaseLLMClient):
    """OpenAI API 클라이언트"""

    def __init__(self):
        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY가 설정되지 않았습니다")

    def get_chat_model(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> BaseChatModel:
        """단계별 temperature/max_tokens를 적용한 ChatOpenAI 모델 반환"""
        return ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout,
            temperature=temperature,
            max_tokens=max_tokens,
            streaming=True,
        )

    def get_model_name(self) -> str:
        """사용 중인 모델 이름 반환"""
        return settings.openai_model
