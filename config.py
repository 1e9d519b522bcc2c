# config.py
from __future__ import annotations
import logging
from typing import List, Optional, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, model_validator

# Keys shipped in sample .env files; treated the same as no key at all
PLACEHOLDER_API_KEYS = {
    "",
    "demo-key",
    "your-openai-api-key-here",
    "sk-proj-YOUR_ACTUAL_OPENAI_API_KEY_HERE",
}

class Settings(BaseSettings):
    # Read .env; ignore extra env vars to avoid crashes
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_nested_delimiter="__",
        env_prefix="",  # no automatic prefix
    )

    # --- Runtime env / debugging ---
    APP_ENV: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
    )
    DEBUG: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEBUG", "debug"),
    )

    # --- OpenAI ---
    OPENAI_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("OPENAI_MODEL", "openai_model"),
    )
    OPENAI_TEMPERATURE: float = Field(
        default=0.7,
        validation_alias=AliasChoices("OPENAI_TEMPERATURE", "openai_temperature"),
    )
    OPENAI_TIMEOUT_S: float = Field(
        default=60.0,
        validation_alias=AliasChoices("OPENAI_TIMEOUT_S", "openai_timeout_s"),
    )

    # --- Fallback streaming ---
    # Seconds between demo fragments; 0 streams them back to back
    FALLBACK_TOKEN_DELAY_S: float = Field(
        default=0.2,
        ge=0,
        validation_alias=AliasChoices("FALLBACK_TOKEN_DELAY_S", "fallback_token_delay_s"),
    )

    # --- Server Settings (for deployment) ---
    PORT: int = Field(
        default=8080,
        validation_alias=AliasChoices("PORT", "port"),
    )
    HOST: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    MAX_BODY_BYTES: int = Field(
        default=1024 * 50,
        validation_alias=AliasChoices("MAX_BODY_BYTES", "max_body_bytes"),
    )

    # --- Logging ---
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    # --- CORS (env-driven) ---
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )
    # Optional comma-separated alternative that overrides the above
    FRONTEND_ORIGINS: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FRONTEND_ORIGINS", "frontend_origins"),
    )

    CORS_ALLOW_CREDENTIALS: bool = Field(
        default=False,
        validation_alias=AliasChoices("CORS_ALLOW_CREDENTIALS", "cors_allow_credentials"),
    )
    CORS_ALLOW_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
        validation_alias=AliasChoices("CORS_ALLOW_METHODS", "cors_allow_methods"),
    )
    CORS_ALLOW_HEADERS: List[str] = Field(
        default_factory=lambda: [
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "X-Request-Id",
            "Cache-Control",
        ],
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS", "cors_allow_headers"),
    )
    CORS_EXPOSE_HEADERS: List[str] = Field(
        default_factory=lambda: ["X-Request-Id"],
        validation_alias=AliasChoices("CORS_EXPOSE_HEADERS", "cors_expose_headers"),
    )
    CORS_MAX_AGE: int = Field(
        default=86400,
        validation_alias=AliasChoices("CORS_MAX_AGE", "cors_max_age"),
    )

    @model_validator(mode="after")
    def _merge_frontend_origins(self) -> "Settings":
        if self.FRONTEND_ORIGINS:
            parts = [p.strip() for p in self.FRONTEND_ORIGINS.split(",") if p.strip()]
            if parts:
                self.CORS_ALLOW_ORIGINS = parts
        return self

    @model_validator(mode="after")
    def _warn_production_settings(self) -> "Settings":
        """Production can run without a key, but only the demo itinerary is served."""
        if self.APP_ENV == "production" and not self.has_ai_credential:
            logging.getLogger("config").warning(
                "OPENAI_API_KEY is not set in production; /generate-itinerary will "
                "serve the fallback itinerary only."
            )
        return self

    @property
    def has_ai_credential(self) -> bool:
        return self.OPENAI_API_KEY.strip() not in PLACEHOLDER_API_KEYS

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()

settings = Settings()
