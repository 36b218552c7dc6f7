"""
Rule resolution: prerequisite evaluation, rule modules and their registry.
"""

from .modules import RuleModule, Stage, STAGE_SEQUENCE, builtin_modules
from .prerequisites import PrerequisiteEvaluator
from .registry import RuleModuleRegistry, default_registry

__all__ = [
    "RuleModule",
    "Stage",
    "STAGE_SEQUENCE",
    "builtin_modules",
    "PrerequisiteEvaluator",
    "RuleModuleRegistry",
    "default_registry",
]
