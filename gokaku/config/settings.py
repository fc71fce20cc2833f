from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field

load_dotenv()

_package_root = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Base settings for the application."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Gokaku Naming Backend"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Name suggestions with dictionary-corrected five-grade (gokaku) evaluation"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOGS_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # OpenAI settings
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.8
    CANDIDATE_COUNT: int = Field(default=3, ge=1, le=10)

    # Stroke dictionary artifact (built offline by scripts/build_stroke_dictionary.py)
    STROKE_DICTIONARY_PATH: str = ""

    # Auxiliary stroke lookup for characters missing from the dictionary
    STROKE_LOOKUP_ENABLED: bool = True
    STROKE_LOOKUP_URL: str = "https://kanjiapi.dev/v1/kanji"
    STROKE_LOOKUP_TIMEOUT: float = 5.0
    STROKE_LOOKUP_CONCURRENCY: int = Field(default=8, ge=1)
    STROKE_LOOKUP_RETRIES: int = Field(default=3, ge=1)

    RESOLUTION_CACHE_MAX_SIZE: int = Field(default=4096, ge=1)

    # Use the model's own per-character guesses for characters nothing else could resolve
    TRUST_UPSTREAM_STROKE_HINTS: bool = False

    @computed_field
    @property
    def effective_dictionary_path(self) -> str:
        """Resolve the stroke dictionary file.

        Priority:
        1. Explicit STROKE_DICTIONARY_PATH
        2. The artifact bundled with the package (gokaku/data/strokes.json)
        """
        if self.STROKE_DICTIONARY_PATH and self.STROKE_DICTIONARY_PATH.strip():
            return self.STROKE_DICTIONARY_PATH.strip()
        return str(_package_root / "data" / "strokes.json")


settings = Settings()
