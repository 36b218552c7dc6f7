"""Automatic Bonus Progression — item bonuses are replaced by level-based bonuses.

Potency tables (character level → bonus):

    attack potency   4: +1   10: +2   16: +3
    armor potency    5: +1   11: +2   18: +3
    resilient        8: +1   11: +2   17: +3
    striking dice    4: 1    12: 2    19: 3
"""

from __future__ import annotations

from ...models import Character, DerivedCharacter, ValidationSeverity, VariantRule
from .base import RuleModule

ATTACK_POTENCY = ((16, 3), (10, 2), (4, 1))
ARMOR_POTENCY = ((18, 3), (11, 2), (5, 1))
RESILIENT = ((17, 3), (11, 2), (8, 1))
STRIKING_DICE = ((19, 3), (12, 2), (4, 1))

SAVING_THROWS = ("fortitude", "reflex", "will")


def _lookup(table: tuple[tuple[int, int], ...], level: int) -> int:
    for threshold, bonus in table:
        if level >= threshold:
            return bonus
    return 0


def attack_potency_bonus(level: int) -> int:
    return _lookup(ATTACK_POTENCY, level)


def armor_potency_bonus(level: int) -> int:
    return _lookup(ARMOR_POTENCY, level)


def resilient_bonus(level: int) -> int:
    return _lookup(RESILIENT, level)


def striking_dice(level: int) -> int:
    return _lookup(STRIKING_DICE, level)


class AutomaticBonusProgressionModule(RuleModule):
    name = "Automatic Bonus Progression"
    priority = 100
    variant_rule = VariantRule.AUTOMATIC_BONUS_PROGRESSION

    def on_proficiency(self, character: Character, derived: DerivedCharacter) -> None:
        level = derived.level
        armor = armor_potency_bonus(level)
        if armor:
            derived.add_proficiency_bonus("armor", armor)
        attack = attack_potency_bonus(level)
        if attack:
            derived.add_proficiency_bonus("attack", attack)
        resilient = resilient_bonus(level)
        if resilient:
            for save in SAVING_THROWS:
                derived.add_proficiency_bonus(save, resilient)

    def on_validation(self, character: Character, derived: DerivedCharacter) -> None:
        level = derived.level
        derived.add_issue(
            ValidationSeverity.INFO,
            "Automatic Bonus Progression",
            "Item bonuses to AC, attack rolls, and damage are replaced by automatic bonuses",
            data={
                "attack_potency": attack_potency_bonus(level),
                "armor_potency": armor_potency_bonus(level),
                "resilient": resilient_bonus(level),
                "striking_dice": striking_dice(level),
            },
        )
