"""
Archetype Service - archetype legality checks for a derived character.

Answers whether a character may take an archetype feat, whether held
archetypes progress legally, which class archetypes conflict, and what
spellcasting a multiclass archetype grants at a level.

Feat membership is resolved through an ``ArchetypeIndex`` built from the
repository on first use.
"""

from __future__ import annotations

import logging

from ..models import (
    Archetype,
    ArchetypeBenefits,
    ArchetypeType,
    DerivedCharacter,
    Feat,
    MulticlassSpellcasting,
    ValidationIssue,
    ValidationSeverity,
)
from ..results import Result
from ..rules.prerequisites import PrerequisiteEvaluator
from .index import ArchetypeIndex
from .repository import ArchetypeRepository

logger = logging.getLogger(__name__)

ISSUE_CATEGORY = "Archetype"

# Multiclass archetypes grant at most one slot per spell level, up to 4th
MAX_SLOTTED_SPELL_LEVEL = 4
SLOTS_PER_SPELL_LEVEL = 1

# Spontaneous multiclass casters know two spells per eligible spell level
SPELLS_KNOWN_PER_LEVEL = 2

# Feats of an archetype required before another archetype's dedication
REQUIRED_FEATS_BEFORE_NEW_ARCHETYPE = 2


class ArchetypeService:
    """Archetype rules evaluated against a derived character.

    Args:
        repository: Source of archetype and feat definitions.
        evaluator: Prerequisite evaluator used for held-feat checks.
        index: Prebuilt membership index; built from the repository on first
            use when omitted.
    """

    def __init__(
        self,
        repository: ArchetypeRepository,
        evaluator: PrerequisiteEvaluator | None = None,
        index: ArchetypeIndex | None = None,
    ) -> None:
        self.repository = repository
        self.evaluator = evaluator or PrerequisiteEvaluator()
        self._index = index

    async def get_index(self) -> Result[ArchetypeIndex]:
        """Archetype index, built from the repository on first successful call.

        A repository failure is returned as is and the build is retried on
        the next call.
        """
        if self._index is None:
            result = await ArchetypeIndex.build(self.repository)
            if result.is_failure:
                return result
            self._index = result.unwrap()
        return Result.success(self._index)

    # =========================================================================
    # Feat eligibility
    # =========================================================================

    async def can_take_archetype_feat(
        self, archetype_id: str, feat_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        """Check whether the character may take ``feat_id`` from an archetype.

        Without the archetype's dedication, only the dedication itself may be
        taken, and only if its prerequisites are met. With the dedication,
        every other archetype the character holds must already satisfy the
        two-feat requirement.
        """
        archetype_result = await self.repository.get_archetype(archetype_id)
        if archetype_result.is_failure:
            return Result.from_failure(archetype_result)
        archetype = archetype_result.unwrap()

        if character.has_feat(archetype.dedication_feat_id):
            return await self.can_take_new_archetype(character, excluding=archetype_id)

        if feat_id == archetype.dedication_feat_id:
            return await self.validate_dedication_prerequisites(archetype_id, character)

        logger.debug(
            f"{character.name} lacks {archetype.dedication_feat_id}, cannot take {feat_id}"
        )
        return Result.success(False)

    async def validate_dedication_prerequisites(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        return await self.repository.validate_prerequisites(archetype_id, character)

    async def has_required_archetype_feats(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        """True once the character holds enough feats of the archetype to branch out."""
        archetype_result = await self.repository.get_archetype(archetype_id)
        if archetype_result.is_failure:
            return Result.from_failure(archetype_result)
        if not archetype_result.unwrap().requires_two_feats_before_new_archetype:
            return Result.success(True)

        count_result = await self.get_archetype_feat_count(archetype_id, character)
        if count_result.is_failure:
            return Result.from_failure(count_result)
        return Result.success(count_result.unwrap() >= REQUIRED_FEATS_BEFORE_NEW_ARCHETYPE)

    async def can_take_new_archetype(
        self, character: DerivedCharacter, excluding: str | None = None
    ) -> Result[bool]:
        """Check the two-feat requirement of every archetype the character holds.

        Args:
            character: Derived character to check.
            excluding: Archetype left out of the check, usually the one the
                character is taking a feat from.
        """
        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        held = character.selected_feat_ids

        for archetype_id in index.archetypes_held(held):
            if archetype_id == excluding:
                continue
            archetype = index.get(archetype_id)
            if archetype is None or not archetype.requires_two_feats_before_new_archetype:
                continue
            count = len(index.held_feats(archetype_id, held))
            if count < REQUIRED_FEATS_BEFORE_NEW_ARCHETYPE:
                logger.debug(
                    f"{character.name} holds {count} feat(s) of {archetype_id}, "
                    f"needs {REQUIRED_FEATS_BEFORE_NEW_ARCHETYPE}"
                )
                return Result.success(False)
        return Result.success(True)

    # =========================================================================
    # Progression and conflicts
    # =========================================================================

    async def validate_archetype_progression(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        """Held feats of an archetype require its dedication and their own prerequisites."""
        archetype_result = await self.repository.get_archetype(archetype_id)
        if archetype_result.is_failure:
            return Result.from_failure(archetype_result)
        archetype = archetype_result.unwrap()

        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        held = self._held_archetype_feats(index, archetype_id, character)
        if held and not character.has_feat(archetype.dedication_feat_id):
            return Result.success(False)

        for feat in held:
            if not self.evaluator.evaluate_all(feat.prerequisites, character):
                logger.debug(f"{character.name} no longer meets prerequisites of {feat.id}")
                return Result.success(False)
        return Result.success(True)

    async def has_conflicting_archetypes(
        self, proposed_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        """Class archetypes of the same class are mutually exclusive."""
        proposed_result = await self.repository.get_archetype(proposed_id)
        if proposed_result.is_failure:
            return Result.from_failure(proposed_result)
        proposed = proposed_result.unwrap()
        if proposed.type != ArchetypeType.CLASS:
            return Result.success(False)

        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        for current_id in index.archetypes_held(character.selected_feat_ids):
            current = index.get(current_id)
            if current is not None and self._conflicts(proposed, current):
                return Result.success(True)
        return Result.success(False)

    async def get_blocked_archetypes(self, character: DerivedCharacter) -> Result[list[str]]:
        """Catalogued class archetypes the character can no longer take."""
        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        current = [index.get(a) for a in index.archetypes_held(character.selected_feat_ids)]

        blocked = [
            candidate_id for candidate_id in index.archetype_ids()
            if any(
                c is not None and self._conflicts(index.get(candidate_id), c)
                for c in current
            )
        ]
        return Result.success(blocked)

    @staticmethod
    def _conflicts(proposed: Archetype | None, current: Archetype) -> bool:
        return (
            proposed is not None
            and proposed.type == ArchetypeType.CLASS
            and current.type == ArchetypeType.CLASS
            and current.id != proposed.id
            and current.associated_class_id == proposed.associated_class_id
        )

    async def validate_all_archetypes(
        self, character: DerivedCharacter
    ) -> Result[list[ValidationIssue]]:
        """One error issue per held archetype whose progression is invalid."""
        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        issues: list[ValidationIssue] = []

        for archetype_id in index.archetypes_held(character.selected_feat_ids):
            result = await self.validate_archetype_progression(archetype_id, character)
            if result.is_failure:
                message = f"Validation failed for archetype {archetype_id}: {result.error.message}"
            elif not result.unwrap():
                message = f"Invalid progression for archetype {archetype_id}"
            else:
                continue
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                category=ISSUE_CATEGORY,
                message=message,
                data={"archetype_id": archetype_id},
            ))

        return Result.success(issues)

    # =========================================================================
    # Spellcasting and benefits
    # =========================================================================

    async def calculate_multiclass_spellcasting(
        self, archetype_id: str, level: int
    ) -> Result[MulticlassSpellcasting]:
        """Spellcasting a multiclass archetype grants at a character level.

        The highest spell level is half the character level, capped by the
        archetype. Only spell levels 1-4 get a slot; higher levels are listed
        with zero slots.
        """
        archetype_result = await self.repository.get_archetype(archetype_id)
        if archetype_result.is_failure:
            return Result.from_failure(archetype_result)
        progression = archetype_result.unwrap().spellcasting
        if progression is None:
            return Result.not_found(
                f"Archetype '{archetype_id}' grants no spellcasting", archetype_id=archetype_id
            )

        max_spell_level = min(progression.max_spell_level, level // 2)
        slots: dict[int, int] = {}
        known: dict[int, int] = {}
        for spell_level in range(1, max_spell_level + 1):
            eligible = level >= spell_level * 2
            slots[spell_level] = (
                SLOTS_PER_SPELL_LEVEL
                if eligible and spell_level <= MAX_SLOTTED_SPELL_LEVEL else 0
            )
            if eligible and not progression.prepared_casting:
                known[spell_level] = SPELLS_KNOWN_PER_LEVEL

        return Result.success(MulticlassSpellcasting(
            tradition=progression.tradition,
            spellcasting_ability=progression.spellcasting_ability,
            prepared_casting=progression.prepared_casting,
            max_spell_level=max_spell_level,
            spell_slots=slots,
            spells_known=known,
        ))

    async def get_multiclass_spell_slots(self, archetype_id: str, level: int) -> Result[dict[int, int]]:
        result = await self.calculate_multiclass_spellcasting(archetype_id, level)
        if result.is_failure:
            return Result.from_failure(result)
        return Result.success(result.unwrap().spell_slots)

    async def calculate_archetype_benefits(
        self, archetype_id: str, level: int
    ) -> Result[ArchetypeBenefits]:
        archetype_result = await self.repository.get_archetype(archetype_id)
        if archetype_result.is_failure:
            return Result.from_failure(archetype_result)
        archetype = archetype_result.unwrap()

        benefits = ArchetypeBenefits()
        if archetype.type == ArchetypeType.MULTICLASS and archetype.spellcasting is not None:
            spellcasting = await self.calculate_multiclass_spellcasting(archetype_id, level)
            if spellcasting.is_success:
                benefits.spellcasting = spellcasting.unwrap()
                benefits.spell_slots = dict(benefits.spellcasting.spell_slots)
        return Result.success(benefits)

    # =========================================================================
    # Character queries
    # =========================================================================

    async def get_archetype_feat_count(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[int]:
        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        return Result.success(len(index.held_feats(archetype_id, character.selected_feat_ids)))

    async def get_next_available_feats(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[list[Feat]]:
        return await self.repository.get_available_feats(archetype_id, character)

    async def get_character_archetypes(self, character: DerivedCharacter) -> Result[list[str]]:
        index_result = await self.get_index()
        if index_result.is_failure:
            return Result.from_failure(index_result)
        index = index_result.unwrap()
        return Result.success(index.archetypes_held(character.selected_feat_ids))

    @staticmethod
    def _held_archetype_feats(
        index: ArchetypeIndex, archetype_id: str, character: DerivedCharacter
    ) -> list[Feat]:
        owned = index.feats_of(archetype_id)
        return [feat for feat in character.selected_feats if feat.id in owned]


__all__ = ["ArchetypeService"]
