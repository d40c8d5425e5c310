from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False

    # JWT Settings
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    # AI auto-responder
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 20.0

    # Image host (imgbb-compatible upload endpoint)
    IMGBB_API_KEY: str = ""
    IMGBB_UPLOAD_URL: str = "https://api.imgbb.com/1/upload"
    IMAGE_UPLOAD_TIMEOUT_SECONDS: float = 30.0

    DEFAULT_LOGO_URL: str = "https://i.ibb.co/XxVXdyhC/6.png"
    DEFAULT_PRODUCT_IMAGE_URL: str = "https://picsum.photos/200/200"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
