from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI

from diff_digest.core.config import settings
from diff_digest.infra.llm.base import BaseLLMClient


class GeminiClient(BaseLLMClient):
    """Gemini 클라이언트"""

    def __init__(self):
        if not settings.gemini_api_key:
            raise ValueError("GEMINI_API_KEY가 설정되지 않았습니다")

    def get_chat_model(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> BaseChatModel:
        """LangChain ChatGoogleGenerativeAI 모델 반환"""
        return ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=settings.gemini_api_key,
            timeout=settings.gemini_timeout,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

    def get_model_name(self) -> str:
        """사용 중인 모델 이름 반환"""
        return settings.gemini_model
