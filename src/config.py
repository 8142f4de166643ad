from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    Every time value is in milliseconds.
    """

    # API Keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    assemblyai_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "transcriptions"

    # Models
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1024
    llm_model: str = "claude-sonnet-4-20250514"
    speech_model: str = "universal-3-pro"

    # Sentence reconstruction
    sentence_gap_ms: int = 500
    min_words_per_sentence: int = 3
    paragraph_marker: str = "next line"

    # Chunk segmentation
    chunking_strategy: str = "paragraph"
    min_sentences_per_chunk: int = 2
    max_sentences_per_chunk: int = 8
    paragraph_gap_ms: int = 2000
    target_paragraphs_per_chunk: int = 1

    # Worker
    embedding_concurrency: int = 8
    queue_consumers: int = 2
    queue_max_retries: int = 3
    queue_retry_delay_seconds: float = 2.0

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
