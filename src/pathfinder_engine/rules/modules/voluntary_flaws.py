"""Voluntary Flaws — take extra ability flaws in exchange for extra boosts."""

from __future__ import annotations

from collections import Counter

from ...models import Character, DerivedCharacter, ValidationSeverity, VariantRule
from .base import RuleModule

FLAW_PENALTY = 2

# No ability may drop below this score through voluntary flaws
MIN_FLAWED_SCORE = 8

CATEGORY = "Voluntary Flaws"


class VoluntaryFlawsModule(RuleModule):
    """Apply -2 per voluntary flaw; every pair of flaws earns one extra boost."""

    name = "Voluntary Flaws"
    priority = 10  # Runs first, later modules read the flawed scores
    variant_rule = VariantRule.VOLUNTARY_FLAWS

    def on_scores(self, character: Character, derived: DerivedCharacter) -> None:
        if not character.voluntary_flaws:
            return
        for ability in character.voluntary_flaws:
            if ability in derived.ability_scores:
                derived.ability_scores[ability] -= FLAW_PENALTY
        derived.recalculate_modifiers()

    def on_validation(self, character: Character, derived: DerivedCharacter) -> None:
        flaws = character.voluntary_flaws
        if not flaws:
            return

        for ability, count in Counter(flaws).items():
            if derived.ability_scores.get(ability, 10) < MIN_FLAWED_SCORE:
                derived.add_issue(
                    ValidationSeverity.ERROR,
                    CATEGORY,
                    f"{ability.capitalize()} cannot be reduced below {MIN_FLAWED_SCORE}",
                    fix_action=f"RemoveVoluntaryFlaw:{ability}",
                )
            if count % 2 != 0:
                derived.add_issue(
                    ValidationSeverity.WARNING,
                    CATEGORY,
                    f"Unpaired voluntary flaw in {ability.capitalize()}. "
                    "Each pair of voluntary flaws grants one additional ability boost.",
                    fix_action=f"AddVoluntaryFlaw:{ability}",
                )

        additional_boosts = len(flaws) // 2
        derived.add_issue(
            ValidationSeverity.INFO,
            CATEGORY,
            f"Voluntary flaws grant {additional_boosts} additional ability boost(s)",
            data={
                "total_flaws": len(flaws),
                "additional_boosts": additional_boosts,
                "flaws": list(flaws),
            },
        )
