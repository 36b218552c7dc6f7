"""Proficiency Without Level — proficiency bonuses no longer add character level."""

from __future__ import annotations

from ...models import Character, DerivedCharacter, ValidationSeverity, VariantRule
from .base import RuleModule


class ProficiencyWithoutLevelModule(RuleModule):
    """Each proficiency's bonus is its rank value alone (Trained +2 ... Legendary +8)."""

    name = "Proficiency Without Level"
    priority = 75
    variant_rule = VariantRule.PROFICIENCY_WITHOUT_LEVEL

    def on_proficiency(self, character: Character, derived: DerivedCharacter) -> None:
        for name, rank in derived.proficiencies.items():
            derived.proficiency_bonuses[name] = int(rank)

    def on_validation(self, character: Character, derived: DerivedCharacter) -> None:
        derived.add_issue(
            ValidationSeverity.INFO,
            "Proficiency Without Level",
            "Proficiency bonuses do not include character level",
        )
