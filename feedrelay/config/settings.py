"""
FeedRelay Configuration System
=============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.

Nested fields use the ``FEEDRELAY_`` prefix and ``__`` as delimiter, e.g.
``FEEDRELAY_TELEGRAM__BOT_TOKEN`` or ``FEEDRELAY_PROCESSING__MAX_ARTICLES_TO_SEND``.
"""

import os
from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FeedSettings(BaseModel):
    """Feed source configuration."""
    url: str = Field(default="https://cms.zerohedge.com/fullrss2.xml", description="RSS feed URL to poll")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; FeedRelay/1.0)",
        description="User-Agent header sent with feed requests"
    )


class TelegramSettings(BaseModel):
    """Telegram delivery configuration."""
    bot_token: Optional[str] = Field(default=None, description="Telegram bot token")
    chat_id: Optional[str] = Field(default=None, description="Destination chat or channel ID")
    max_message_length: int = Field(default=4096, ge=100, le=4096, description="Telegram hard message limit")
    safety_margin: int = Field(default=100, ge=0, le=1000, description="Headroom kept below the hard limit for markup")
    segment_delay_seconds: float = Field(default=0.5, ge=0.0, le=10.0, description="Pause between message segments")
    notify_on_failure: bool = Field(default=True, description="Send fatal run errors to the chat")

    @field_validator('bot_token')
    @classmethod
    def validate_bot_token(cls, v):
        """Validate bot token format when one is supplied."""
        if v is None or v == "":
            return None

        # Allow test tokens for development
        if v.endswith('_test'):
            return v

        if not v.count(':') == 1 or len(v) < 20:
            raise ValueError("Invalid bot token format")

        return v

    @model_validator(mode='after')
    def validate_segment_length(self):
        """Ensure the margin leaves room for at least one character."""
        if self.max_message_length - self.safety_margin < 1:
            raise ValueError("safety_margin must be smaller than max_message_length")
        return self

    @property
    def segment_length(self) -> int:
        return self.max_message_length - self.safety_margin


class TranslationSettings(BaseModel):
    """Translation service configuration."""
    api_key: Optional[str] = Field(default=None, description="Yandex Cloud Translate API key")
    folder_id: Optional[str] = Field(default=None, description="Yandex Cloud folder ID")
    target_language: str = Field(default="ru", min_length=2, description="Target language code")
    endpoint: str = Field(
        default="https://translate.api.cloud.yandex.net/translate/v2/translate",
        description="Translate API endpoint"
    )
    max_chunk_size: int = Field(default=10000, ge=1, le=10000, description="Maximum characters per translate call")


class ProcessingSettings(BaseModel):
    """New-item pipeline configuration."""
    check_interval_seconds: float = Field(default=60.0, ge=1.0, description="Seconds between feed polls")
    max_articles_to_send: int = Field(default=3, ge=1, le=50, description="Maximum items delivered per run")
    max_summary_length: int = Field(default=1000, ge=10, description="Summarize translations longer than this")
    summary_sentences: int = Field(default=5, ge=1, le=50, description="Sentences kept in a summary")
    max_translation_input: int = Field(
        default=1000, ge=0,
        description="Cap on characters sent for translation per item (0 disables the cap)"
    )
    item_delay_seconds: float = Field(default=1.0, ge=0.0, le=60.0, description="Pause before each translation")
    run_on_start: bool = Field(default=False, description="Run the pipeline immediately when the service starts")


class LimitsSettings(BaseModel):
    """Timeouts and retry limits."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="Request timeout in seconds")
    fetch_max_retries: int = Field(default=3, ge=1, le=10, description="Feed fetch attempts per run")
    fetch_retry_delay: float = Field(default=5.0, ge=0.0, le=300.0, description="Fixed delay between fetch attempts")
    run_timeout_seconds: float = Field(default=600.0, ge=10.0, description="Upper bound for a single pipeline run")


class StorageSettings(BaseModel):
    """Checkpoint storage configuration."""
    checkpoint_path: str = Field(default="last_post.txt", description="Checkpoint file path")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/feedrelay.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging on the console")
    console_logging: bool = Field(default=True, description="Enable console logging")


# Env var names for the secrets validate_configuration() insists on
REQUIRED_SECRETS = {
    "FEEDRELAY_TELEGRAM__BOT_TOKEN": ("telegram", "bot_token"),
    "FEEDRELAY_TELEGRAM__CHAT_ID": ("telegram", "chat_id"),
    "FEEDRELAY_TRANSLATION__API_KEY": ("translation", "api_key"),
    "FEEDRELAY_TRANSLATION__FOLDER_ID": ("translation", "folder_id"),
}

# Names read by earlier deployments; the FEEDRELAY_ names win when both are set
LEGACY_SECRET_NAMES = {
    "TG_TOKEN": ("telegram", "bot_token"),
    "TG_CHAT_ID": ("telegram", "chat_id"),
    "YANDEX_TRANSLATE_KEY": ("translation", "api_key"),
    "YANDEX_FOLDER_ID": ("translation", "folder_id"),
}


class FeedRelaySettings(BaseSettings):
    """Main application settings."""

    feed: FeedSettings = Field(default_factory=FeedSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    translation: TranslationSettings = Field(default_factory=TranslationSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="FeedRelay", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "FEEDRELAY_",
        "extra": "ignore",
    }

    @model_validator(mode='before')
    @classmethod
    def apply_legacy_secret_names(cls, data):
        """Fill unset secrets from the legacy environment variable names."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        for env_name, (section, field_name) in LEGACY_SECRET_NAMES.items():
            value = os.environ.get(env_name)
            if not value:
                continue

            section_data = data.get(section) or {}
            if not isinstance(section_data, dict) or section_data.get(field_name):
                continue
            data[section] = {**section_data, field_name: value}

        return data

    def missing_secrets(self) -> List[str]:
        """Names of required environment variables that are unset."""
        missing = []
        for env_name, (section, field_name) in REQUIRED_SECRETS.items():
            if not getattr(getattr(self, section), field_name):
                missing.append(env_name)
        return missing

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        missing = self.missing_secrets()
        if missing:
            errors.append(f"Required environment variables not set: {', '.join(missing)}")

        for label, raw_path in (
            ("checkpoint path", self.storage.checkpoint_path),
            ("log file path", self.logging.file_path),
        ):
            if not raw_path:
                continue
            try:
                Path(raw_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid {label}: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_MISSING if missing else ErrorCode.CONFIG_INVALID,
                context={"missing": missing},
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> FeedRelaySettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid or secrets are missing
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = FeedRelaySettings()
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_PARSE_ERROR
        )

    settings.validate_configuration()
    return settings

