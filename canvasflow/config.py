"""
Configuration settings for the CanvasFlow engine and API.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    APP_NAME: str = "CanvasFlow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Execution Engine
    STEP_DELAY_SECONDS: float = 0.5  # Pacing delay before each node's work
    MAX_STEPS: int = 1000  # Node visits per run (0 = unbounded); an acyclic graph with more nodes also hits it
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
