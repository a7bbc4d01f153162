# DEPENDENCIES
from pathlib import Path
from typing import List
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application-wide settings: primary configuration source
    """
    # Application Info
    APP_NAME                 : str            = "ClauseWise Contract Risk Analyzer"
    APP_VERSION              : str            = "1.0.0"
    API_PREFIX               : str            = "/api/v1"

    # Server Configuration
    HOST                     : str            = "0.0.0.0"
    PORT                     : int            = 8000
    RELOAD                   : bool           = False
    WORKERS                  : int            = 1

    # CORS Settings
    CORS_ORIGINS             : list           = ["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"]
    CORS_ALLOW_CREDENTIALS   : bool           = True
    CORS_ALLOW_METHODS       : list           = ["*"]
    CORS_ALLOW_HEADERS       : list           = ["*"]

    # AI Analyzer Settings
    AI_ENABLED               : bool           = True
    AI_PROVIDER              : str            = "openai"
    OPENAI_API_KEY           : Optional[str]  = None
    OPENAI_BASE_URL          : Optional[str]  = None
    OPENAI_MODEL             : str            = "gpt-4o-mini"
    AI_FALLBACK_MODELS       : List[str]      = ["gpt-4o", "gpt-4.1-mini"]
    AI_REQUEST_TIMEOUT       : float          = 45.0  # seconds, per remote call
    AI_TOTAL_TIMEOUT         : float          = 180.0 # seconds, whole AI path incl. retries
    AI_MAX_OUTPUT_TOKENS     : int            = 4000
    REDLINE_MODEL            : Optional[str]  = None

    # Local provider (Ollama)
    OLLAMA_BASE_URL          : str            = "http://localhost:11434"
    OLLAMA_MODEL             : str            = "llama3:8b"
    OLLAMA_TIMEOUT           : int            = 300

    # Moderation Settings
    MODERATION_ENABLED       : bool           = True
    MODERATION_MODELS        : List[str]      = ["omni-moderation-latest", "text-moderation-latest"]
    MODERATION_SAMPLE_CHARS  : int            = 20000
    MODERATION_TIMEOUT       : float          = 15.0

    # Analysis Limits
    MAX_ANALYZE_CHARS        : int            = 60000  # AI input ceiling before truncation
    MIN_CONTRACT_LENGTH      : int            = 1
    MAX_CONTRACT_LENGTH      : int            = 500000
    DEMO_MIN_LENGTH          : int            = 50
    DEMO_MAX_LENGTH          : int            = 12000
    ALLOW_DEMO_AI            : bool           = False

    # Rate Limiting Settings
    ANALYZE_RATE_CAPACITY    : int            = 10
    ANALYZE_RATE_PER_SECOND  : float          = 0.2
    DEMO_COOLDOWN_SECONDS    : int            = 30

    # Logging Settings
    LOG_LEVEL                : str            = "INFO"
    LOG_DIR                  : Path           = Path("logs")


    class Config:
        env_file          = ".env"
        env_file_encoding = "utf-8"
        case_sensitive    = True
        extra             = "ignore"


# Global settings instance
settings = Settings()
