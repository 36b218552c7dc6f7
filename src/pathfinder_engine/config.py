"""
Configuration model for the Pathfinder rule-resolution engine.
"""

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger("pathfinder-engine")

ENV_PREFIX = "PF_ENGINE_"


class EngineConfig(BaseModel):
    """Runtime settings for the calculator, caches and archetype rules.

    Values come from keyword arguments in tests and from ``PF_ENGINE_*``
    environment variables (optionally through a ``.env`` file) in servers.
    """

    cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        description="Time to live of cached derived characters, in seconds"
    )
    slow_module_threshold_ms: float = Field(
        default=50.0,
        gt=0.0,
        description="Rule modules slower than this are logged as warnings"
    )
    unknown_prerequisite_policy: Literal["allow", "deny"] = Field(
        default="allow",
        description="Outcome for prerequisite types the evaluator does not know"
    )
    data_dir: Path | None = Field(
        default=None,
        description="Directory holding campaign JSON files"
    )
    archetype_catalogue: Path | None = Field(
        default=None,
        description="YAML archetype catalogue; the bundled catalogue is used when unset"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level for entry points"
    )

    @field_validator("unknown_prerequisite_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v: str) -> str:
        """Accept policy names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return level

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "EngineConfig":
        """Build a config from ``PF_ENGINE_*`` environment variables.

        Args:
            dotenv: Load a ``.env`` file first when one is present.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        if dotenv and not load_dotenv():
            logger.debug("No .env file found, using process environment only")

        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid engine configuration: {e}",
                details={"variables": sorted(values)},
            ) from e
