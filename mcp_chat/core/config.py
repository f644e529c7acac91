# The module is to define the configuration settings for the relay and the chat client.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.2.0

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    """
    The Settings class is used to define the configuration settings for the application.
    It inherits from BaseSettings, which allows it to load environment variables
    and provides type validation for the settings.
    Attributes:
        OPENAI_API_KEY (str): API key for the OpenAI Responses API.
        OPENAI_BASE_URL (str): Optional base URL override for the OpenAI API.
        OPENAI_DEFAULT_MODEL (str): Model used when a relay request carries no model.
        VALIDATION_MODEL (str): Model used to introspect MCP servers.
        GEMINI_API_KEY (str): API key for Gemini.
        GEMINI_BASE_URL (str): Base URL for the Gemini REST API.
        GEMINI_API_VERSION (str): API version segment of the Gemini URL.
        GEMINI_DEFAULT_MODEL (str): Model used when a Gemini request carries no model.
        GEMINI_THINKING_BUDGET (int): Token budget for Gemini thoughts.
        ANTHROPIC_API_KEY (str): API key for Anthropic (reserved, no relay yet).
        UPSTREAM_TIMEOUT (float): Timeout in seconds for upstream provider calls.
        RELAY_BASE_URL (str): Where the chat client reaches the relay.
    """
    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_DEFAULT_MODEL: str = "gpt-4.1-mini"
    VALIDATION_MODEL: str = "gpt-4.1-mini"

    # Gemini
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_API_VERSION: str = "v1beta"
    GEMINI_DEFAULT_MODEL: str = "gemini-2.5-flash-preview-05-20"
    GEMINI_THINKING_BUDGET: int = 1600

    # Anthropic
    ANTHROPIC_API_KEY: Optional[str] = None

    # Relay
    UPSTREAM_TIMEOUT: float = 120.0
    RELAY_BASE_URL: str = "http://localhost:8000"


    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'

# lru_cache to cache the settings instance.
@lru_cache
def get_settings():
    return Settings()
