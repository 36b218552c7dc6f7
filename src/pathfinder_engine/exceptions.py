"""
Exception hierarchy for the Pathfinder rule-resolution engine.

Exceptions are reserved for configuration mistakes made at startup and for
faults raised by external collaborators (cache, repositories). Public engine
operations convert the latter into structured failures, see ``results``.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary of additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(EngineError):
    """Invalid engine configuration (environment or config file)."""
    pass


class ModuleRegistrationError(EngineError):
    """A rule module could not be registered.

    Raised at startup, for example when two modules share a name.

    Attributes:
        module_name: Name of the offending module
    """

    def __init__(
        self,
        message: str,
        module_name: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.module_name = module_name


class RuleModuleError(EngineError):
    """A rule module failed while contributing to a derivation stage.

    Modules may raise this to signal a rule-data problem. The calculator
    records it as a validation issue and keeps running the pipeline.

    Attributes:
        module_name: Name of the module that failed
        stage: Stage during which the failure happened
    """

    def __init__(
        self,
        message: str,
        module_name: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.module_name = module_name
        self.stage = stage


class CacheError(EngineError):
    """The calculation cache backend is unavailable or misbehaved."""
    pass


class RepositoryError(EngineError):
    """A character, campaign or archetype repository is unavailable."""
    pass


__all__ = [
    "EngineError",
    "ConfigurationError",
    "ModuleRegistrationError",
    "RuleModuleError",
    "CacheError",
    "RepositoryError",
]
