from diff_digest.infra.llm.base import BaseLLMClient
from diff_digest.infra.llm.client import (
    CompletionFn,
    CompletionParams,
    chunk_text,
    stream_completion,
)
from diff_digest.infra.llm.factory import get_notes_client, reset_clients
from diff_digest.infra.llm.gemini_client import GeminiClient
from diff_digest.infra.llm.openai_client import OpenAIClient
from diff_digest.infra.llm.vllm_client import VLLMClient

__all__ = [
    "BaseLLMClient",
    "OpenAIClient",
    "VLLMClient",
    "GeminiClient",
    "CompletionFn",
    "CompletionParams",
    "chunk_text",
    "get_notes_client",
    "reset_clients",
    "stream_completion",
]
