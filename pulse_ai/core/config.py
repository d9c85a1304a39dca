from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "LeadTrack Pulse AI"
    API_STR: str = "/api"
    GEMINI_API_KEY: str
    GEMINI_CHAT_MODEL: str = "gemini-1.5-flash"
    GEMINI_FALLBACK_MODEL: str = "gemini-1.5-flash-8b"
    GEMINI_TEMPERATURE: float = 0.2

    # Fixed backoff between model attempts: base * (attempt + 1)
    CHAT_RETRY_BASE_DELAY_SEC: float = 0.4
    CHAT_MAX_TOOL_ROUNDS: int = 3

    RESOURCE_STORE_BACKEND: str = "redis"  # "redis" or "memory"
    REDIS_URL: str = "redis://localhost:6379"
    RESOURCES_COLLECTION: str = "resources"

    COMPANY_NAME: str = "Taliyo Technologies"
    ASSISTANT_NAME: str = "Taliyo Assistant"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ALLOWED_ORIGINS: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

settings = Settings()
