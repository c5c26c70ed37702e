"""Configuration management for ocrtree."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables (``OCRTREE_*``)."""

    # Logging
    log_level: str = "INFO"

    # Input
    chunk_size: int = 64 * 1024

    # Tokenizer
    huge_tree: bool = False
    recover_html: bool = True

    class Config:
        env_prefix = "OCRTREE_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
