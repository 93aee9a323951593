# app/config.py
from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import Field

# Load local .env for development
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # ─── Database ───────────────────────────────────────────────────────────────
    DATABASE_URL: str

    # ─── OpenAI ─────────────────────────────────────────────────────────────────
    # Empty key is allowed; AI endpoints then serve their templated fallbacks.
    OPENAI_API_KEY: str = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4o")
    OPENAI_BASE_URL: str = Field(default="")

    # ─── District ───────────────────────────────────────────────────────────────
    DISTRICT_NAME: str = "GOFAMINT Akowonjo District, Region 28"
    DISTRICT_LOCATION: str = "Lagos, Nigeria"

    # ─── Optional Extras ────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# single settings instance for the whole app
settings = Settings()
