"""
Configuration management for the Product Fact Resolver.
Handles environment variables and application settings.
"""
import json
import os
from typing import Dict, List
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Page loader settings (plain GET, no retries)
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )

    # Resolver settings
    NOT_AVAILABLE: str = os.getenv("NOT_AVAILABLE", "N/A")
    MARKET_CODES: str = os.getenv("MARKET_CODES", "USA")

    # JSON object: {"availability": ["stock", "in stock"]}
    EXTRA_FIELD_SYNONYMS: str = os.getenv("EXTRA_FIELD_SYNONYMS", "")

    @classmethod
    def get_market_codes(cls) -> List[str]:
        """Return market-code substrings stripped from identifiers before digit extraction."""
        return [code.strip() for code in cls.MARKET_CODES.split(",") if code.strip()]

    @classmethod
    def get_extra_synonyms(cls) -> Dict[str, List[str]]:
        """
        Parse EXTRA_FIELD_SYNONYMS into a field -> synonyms mapping.

        Invalid JSON or a non-object value yields an empty mapping.
        """
        if not cls.EXTRA_FIELD_SYNONYMS:
            return {}
        try:
            data = json.loads(cls.EXTRA_FIELD_SYNONYMS)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}

        extra = {}
        for field, synonyms in data.items():
            if isinstance(synonyms, str):
                synonyms = [synonyms]
            if isinstance(synonyms, list):
                extra[str(field).lower()] = [str(s).lower() for s in synonyms if s]
        return extra


config = Config()
