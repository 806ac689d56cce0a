"""
Configuration for the price audit service.
"""

# Load environment variables FIRST
from dotenv import load_dotenv
load_dotenv()

import os
from typing import Optional


class Config:
    """Base configuration."""

    # LLM Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.5-flash")
    LLM_MOCK_MODE: bool = os.getenv("LLM_MOCK_MODE", "false").lower() == "true"  # Canned extraction, no network
    LLM_API_KEY: str = os.getenv("LLM_API_KEY", "")
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", os.getenv("LLM_API_KEY", ""))
    LLM_API_BASE: Optional[str] = os.getenv("LLM_API_BASE", None)
    LLM_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 4096  # Line-item tables can be long

    # Extraction
    DEFAULT_MIME_TYPE: str = "application/pdf"

    # Reconciliation thresholds
    VARIANCE_THRESHOLD: float = 0.01  # Price deltas at or below this are noise
    SYNC_TOLERANCE: float = 0.001  # Baseline already equals the invoice price
    NAME_MATCHING: str = os.getenv("NAME_MATCHING", "exact")  # exact or normalized
    SIMILAR_NAME_THRESHOLD: float = 0.88

    # Persistence
    DATA_DIR: str = os.getenv("DATA_DIR", os.path.join(os.path.dirname(__file__), "data"))
    SNAPSHOT_VERSION: int = 1
    PERSIST_DATA: bool = os.getenv("PERSIST_DATA", "true").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "price_audit.log")

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if cls.LLM_PROVIDER not in ["gemini", "openai"]:
            raise ValueError(f"Invalid LLM_PROVIDER: {cls.LLM_PROVIDER}")

        if cls.NAME_MATCHING not in ["exact", "normalized"]:
            raise ValueError(f"Invalid NAME_MATCHING: {cls.NAME_MATCHING}")

        if cls.LLM_MOCK_MODE:
            return

        if cls.LLM_PROVIDER == "openai" and not cls.LLM_API_KEY:
            raise ValueError("LLM_API_KEY must be set for OpenAI provider")

        if cls.LLM_PROVIDER == "gemini" and not cls.GOOGLE_API_KEY:
            raise ValueError("GOOGLE_API_KEY must be set for Gemini provider")


class DevelopmentConfig(Config):
    """Development configuration."""
    LOG_LEVEL = "DEBUG"
    API_DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    LOG_LEVEL = "INFO"
    API_DEBUG = False


class TestConfig(Config):
    """Test configuration."""
    LLM_TEMPERATURE = 0.0
    LLM_MOCK_MODE = True
    LOG_LEVEL = "DEBUG"
    LOG_FILE = None
    PERSIST_DATA = False


def get_config(env: str = None) -> Config:
    """Get configuration based on environment."""
    if env is None:
        env = os.getenv("ENV", "development").lower()

    if env == "production":
        config = ProductionConfig()
    elif env == "test":
        config = TestConfig()
    else:
        config = DevelopmentConfig()

    # Validate configuration on creation
    config.validate()
    return config
