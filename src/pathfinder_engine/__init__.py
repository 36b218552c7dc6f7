"""
Pathfinder rule-resolution engine: derives character sheets under campaign
variant rules and validates archetype choices.
"""

from .calculator import CharacterCalculator
from .models import *
from .results import EngineFailure, FailureKind, Result

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("pathfinder-engine")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = ["CharacterCalculator", "Result", "EngineFailure", "FailureKind"]
