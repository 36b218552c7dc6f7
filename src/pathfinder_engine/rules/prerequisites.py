"""
Prerequisite evaluation against a derived character.

Evaluation is pure and never raises: malformed clauses (an unparsable
value, an unknown operator, a missing ability) simply evaluate to False.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable
from typing import Literal

from ..models import (
    DerivedCharacter,
    Prerequisite,
    PrerequisiteKind,
    ProficiencyRank,
)

logger = logging.getLogger(__name__)

COMPARISONS: dict[str, Callable[[int, int], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "=": operator.eq,
    "==": operator.eq,
    "<=": operator.le,
    "<": operator.lt,
}


class PrerequisiteEvaluator:
    """Decides whether a derived character satisfies prerequisite clauses.

    Args:
        unknown_policy: Outcome for clause kinds the evaluator does not know.
            "allow" treats them as satisfied, "deny" as unmet.
    """

    def __init__(self, unknown_policy: Literal["allow", "deny"] = "allow") -> None:
        self.unknown_policy = unknown_policy

    def evaluate(self, prerequisite: Prerequisite, character: DerivedCharacter) -> bool:
        """Check one clause, falling back to its alternative when it fails."""
        if self._evaluate_clause(prerequisite, character):
            return True
        if prerequisite.alternative is not None:
            return self.evaluate(prerequisite.alternative, character)
        return False

    def evaluate_all(
        self, prerequisites: Iterable[Prerequisite], character: DerivedCharacter
    ) -> bool:
        return all(self.evaluate(p, character) for p in prerequisites)

    def unmet(
        self, prerequisites: Iterable[Prerequisite], character: DerivedCharacter
    ) -> list[Prerequisite]:
        """Return the clauses the character does not satisfy."""
        return [p for p in prerequisites if not self.evaluate(p, character)]

    def _evaluate_clause(self, prerequisite: Prerequisite, character: DerivedCharacter) -> bool:
        kind = prerequisite.kind
        if kind == PrerequisiteKind.ABILITY_SCORE:
            return self._check_ability_score(prerequisite, character)
        if kind == PrerequisiteKind.SKILL:
            return self._check_skill(prerequisite, character)
        if kind == PrerequisiteKind.LEVEL:
            required = _as_int(prerequisite.value)
            return required is not None and character.level >= required
        if kind == PrerequisiteKind.FEAT:
            return self._check_feat(prerequisite, character)

        allowed = self.unknown_policy == "allow"
        logger.warning(
            f"Unknown prerequisite type '{kind}' for '{prerequisite.target}', "
            f"treated as {'satisfied' if allowed else 'unmet'}"
        )
        return allowed

    @staticmethod
    def _check_ability_score(prerequisite: Prerequisite, character: DerivedCharacter) -> bool:
        score = character.ability_score(prerequisite.target)
        required = _as_int(prerequisite.value)
        compare = COMPARISONS.get(prerequisite.operator.strip())
        if score is None or required is None or compare is None:
            return False
        return compare(score, required)

    @staticmethod
    def _check_skill(prerequisite: Prerequisite, character: DerivedCharacter) -> bool:
        rank = character.proficiency_rank(prerequisite.target)
        if rank is None:
            return False
        try:
            required = ProficiencyRank.parse(
                prerequisite.value if prerequisite.value is not None else ProficiencyRank.TRAINED
            )
        except ValueError:
            return False
        return rank >= required

    @staticmethod
    def _check_feat(prerequisite: Prerequisite, character: DerivedCharacter) -> bool:
        wanted = prerequisite.target.strip().lower()
        owned = {feat_id.lower() for feat_id in character.available_feats}
        for feat in character.selected_feats:
            owned.add(feat.id.lower())
            owned.add(feat.name.lower())
        return wanted in owned


def _as_int(value: int | str | None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


__all__ = ["PrerequisiteEvaluator", "COMPARISONS"]
