from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    BACKEND_API_URL: str | None = None
    BACKEND_TIMEOUT_SECONDS: float = 10.0

    ACADEMY_NAME: str = "Tennis Academy"
    ACADEMY_TIMEZONE: str = "America/Phoenix"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DRAFT_STORE_DIR: str = "./data/drafts"
    DISCOUNT_POLICY: str = "keep"  # "keep" or "clear_on_change"
    CHECKOUT_PATH_PREFIX: str = "/checkout"


settings = Settings()
