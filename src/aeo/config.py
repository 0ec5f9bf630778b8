from dotenv import load_dotenv
from dataclasses import dataclass
from pathlib import Path
import json
import os

from aeo.constants import (
    BROWSER_USER_AGENT,
    DEFAULT_MAX_WORDS,
    DEFAULT_ORACLE_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SCHEMA_CAP,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4.1-mini")
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
    USER_AGENT = os.getenv("USER_AGENT", BROWSER_USER_AGENT)


settings = Settings()


@dataclass
class AuditConfig:
    """Configuration for an audit run."""

    # Extraction bounds, applied before the oracle call
    max_words: int = DEFAULT_MAX_WORDS
    schema_cap: int = DEFAULT_SCHEMA_CAP

    # Oracle
    oracle_timeout_seconds: float = DEFAULT_ORACLE_TIMEOUT_SECONDS
    llm_model: str = "gpt-4.1-mini"
    llm_provider: str = "openai"
    max_tokens: int = 4000
    temperature: float = 0.0

    # Report
    fill_category_gaps: bool = True

    fetch_timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AuditConfig":
        """Load configuration from environment variables.

        Environment variables are prefixed with AEO_,
        e.g. AEO_MAX_WORDS=800. LLM_MODEL and LLM_PROVIDER are used when
        the prefixed variables are absent.

        Returns:
            AuditConfig with values from environment
        """
        config = cls(
            llm_model=settings.LLM_MODEL,
            llm_provider=settings.LLM_PROVIDER,
        )
        prefix = "AEO_"

        for field_name in config.__dataclass_fields__:
            env_key = f"{prefix}{field_name.upper()}"
            env_value = os.getenv(env_key)

            if env_value is not None:
                field_type = config.__dataclass_fields__[field_name].type
                try:
                    if field_type == bool:
                        setattr(config, field_name, env_value.strip().lower() in ("1", "true", "yes", "on"))
                    elif field_type == int:
                        setattr(config, field_name, int(env_value))
                    elif field_type == float:
                        setattr(config, field_name, float(env_value))
                    else:
                        setattr(config, field_name, env_value)
                except ValueError:
                    pass  # Keep default if conversion fails

        return config

    @classmethod
    def from_file(cls, path: str) -> "AuditConfig":
        """Load configuration from a JSON file.

        Args:
            path: Path to JSON configuration file; values may sit at the top
                level or under an "audit" key

        Returns:
            AuditConfig with values from file (defaults if the file is missing)
        """
        config = cls()
        file_path = Path(path)

        if not file_path.exists():
            return config

        with open(file_path, 'r') as f:
            data = json.load(f)

        audit_config = data.get('audit', data)

        for field_name in config.__dataclass_fields__:
            if field_name in audit_config:
                setattr(config, field_name, audit_config[field_name])

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }
