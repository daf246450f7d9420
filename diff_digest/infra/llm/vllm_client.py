from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from diff_digest.core.config import settings
from diff_digest.infra.llm.base import BaseLLMClient


class VLLMClient(BaseLLMClient):
    """vLLM/RunPod 클라이언트 - OpenAI 호환 엔드포인트"""

    def __init__(self):
        if not settings.vllm_api_url:
            raise ValueError("VLLM_API_URL이 설정되지 않았습니다")

    def get_chat_model(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> BaseChatModel:
        """vLLM 서버를 가리키는 ChatOpenAI 모델 반환"""
        return ChatOpenAI(
            model=settings.vllm_model,
            api_key=settings.vllm_api_key or "EMPTY",
            base_url=settings.vllm_api_url,
            timeout=settings.vllm_timeout,
            temperature=temperature,
            max_tokens=max_tokens,
            streaming=True,
        )

    def get_model_name(self) -> str:
        return settings.vllm_model
