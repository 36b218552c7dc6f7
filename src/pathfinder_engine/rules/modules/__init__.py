"""
Built-in rule modules, one per supported variant rule.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .automatic_bonus_progression import AutomaticBonusProgressionModule
from .base import STAGE_SEQUENCE, RuleModule, Stage
from .free_archetype import FreeArchetypeModule
from .ignore_bulk_limit import IgnoreBulkLimitModule
from .proficiency_without_level import ProficiencyWithoutLevelModule
from .voluntary_flaws import VoluntaryFlawsModule

if TYPE_CHECKING:
    from ...archetypes.index import ArchetypeIndex


def builtin_modules(archetype_index: ArchetypeIndex | None = None) -> list[RuleModule]:
    """Fresh instances of every built-in module.

    ``archetype_index`` lets Free Archetype check dedications of slotted feats.
    """
    return [
        VoluntaryFlawsModule(),
        IgnoreBulkLimitModule(),
        ProficiencyWithoutLevelModule(),
        AutomaticBonusProgressionModule(),
        FreeArchetypeModule(archetype_index),
    ]


__all__ = [
    "RuleModule",
    "Stage",
    "STAGE_SEQUENCE",
    "builtin_modules",
    "AutomaticBonusProgressionModule",
    "FreeArchetypeModule",
    "IgnoreBulkLimitModule",
    "ProficiencyWithoutLevelModule",
    "VoluntaryFlawsModule",
]
