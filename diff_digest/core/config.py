from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    environment: str = "development"

    # LLM 프로바이더 선택: "openai", "vllm" 또는 "gemini"
    llm_provider: str = "openai"

    # OpenAI 설정
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    openai_timeout: float = 60.0

    # vLLM/RunPod 설정 - OpenAI 호환 엔드포인트
    vllm_api_url: str = ""
    vllm_api_key: str = ""
    vllm_model: str = ""
    vllm_timeout: float = 120.0

    # Gemini 설정
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_timeout: float = 60.0

    # 릴리즈 노트 생성 설정
    notes_max_tokens: int = 1500
    notes_technical_temperature: float = 0.3
    notes_user_temperature: float = 0.7

    # GitHub
    github_token: str = ""
    github_timeout: float = 30.0
    github_max_concurrent_requests: int = 5
    diffs_default_per_page: int = 10

    # 클라이언트 설정
    notes_api_url: str = "http://localhost:8000"
    notes_request_timeout: float = 120.0
    notes_cache_path: str = "~/.diff-digest/storage.json"
    notes_cache_ttl_seconds: int = 30 * 60

    # 로깅 설정
    log_level: str = "INFO"

    # Langfuse 설정
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_for_production(self) -> list[str]:
        """프로덕션 환경에서 필수 설정 검증 후 누락된 항목 반환"""
        errors = []
        provider = self.llm_provider.lower()
        if provider == "openai" and not self.openai_api_key:
            errors.append("OPENAI_API_KEY")
        if provider == "vllm" and not self.vllm_api_url:
            errors.append("VLLM_API_URL")
        if provider == "gemini" and not self.gemini_api_key:
            errors.append("GEMINI_API_KEY")
        if not self.github_token:
            errors.append("GITHUB_TOKEN")
        return errors

    @model_validator(mode="after")
    def validate_token_budget(self):
        """단계별 토큰 예산이 최소 1 이상인지 검증"""
        if self.notes_max_tokens < 2:
            raise ValueError("NOTES_MAX_TOKENS는 2 이상이어야 합니다")
        return self


settings = Settings()
