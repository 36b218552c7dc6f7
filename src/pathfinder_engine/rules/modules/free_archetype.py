"""Free Archetype — an extra archetype feat slot at every even level."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...models import (
    Character,
    DerivedCharacter,
    FeatSlot,
    ValidationSeverity,
    VariantRule,
)
from .base import RuleModule

if TYPE_CHECKING:
    from ...archetypes.index import ArchetypeIndex

SLOT_TYPE = "Archetype"
CATEGORY = "Free Archetype"


class FreeArchetypeModule(RuleModule):
    """Open "Archetype" feat slots at levels 2, 4, 6... and fill them from picks.

    Picks come from ``Character.free_archetype_picks`` (level → feat id).
    With an archetype index, a slotted archetype feat also requires its
    archetype's dedication.
    """

    name = "Free Archetype"
    priority = 200
    variant_rule = VariantRule.FREE_ARCHETYPE

    def __init__(self, index: ArchetypeIndex | None = None) -> None:
        self.index = index

    def on_slots(self, character: Character, derived: DerivedCharacter) -> None:
        slots = derived.feat_slots.setdefault(SLOT_TYPE, [])
        opened = {slot.level for slot in slots}

        for level in range(2, derived.level + 1, 2):
            if level in opened:
                continue
            slots.append(FeatSlot(
                type=SLOT_TYPE,
                level=level,
                category=CATEGORY,
                selected_feat_id=character.free_archetype_picks.get(level),
                is_required=False,
            ))

    def on_validation(self, character: Character, derived: DerivedCharacter) -> None:
        slot_levels = {slot.level for slot in derived.feat_slots.get(SLOT_TYPE, [])}
        held = set(derived.selected_feat_ids)

        for level, feat_id in sorted(character.free_archetype_picks.items()):
            if level not in slot_levels:
                derived.add_issue(
                    ValidationSeverity.ERROR,
                    CATEGORY,
                    f"No free archetype slot at level {level} for '{feat_id}'",
                    fix_action=f"RemoveFreeArchetypePick:{level}",
                )
            elif feat_id not in held:
                derived.add_issue(
                    ValidationSeverity.WARNING,
                    CATEGORY,
                    f"Free archetype pick '{feat_id}' at level {level} is not among the character's feats",
                    fix_action=f"AddFeat:{feat_id}",
                )

        if self.index is not None:
            self._validate_dedications(derived, held)

        derived.add_issue(
            ValidationSeverity.INFO,
            CATEGORY,
            "You gain archetype feats at even levels that don't count against "
            "your normal class feat progression",
        )

    def _validate_dedications(self, derived: DerivedCharacter, held: set[str]) -> None:
        """One error per archetype whose slotted feats lack its dedication."""
        reported: set[str] = set()
        for slot in derived.feat_slots.get(SLOT_TYPE, []):
            feat_id = slot.selected_feat_id
            if feat_id is None:
                continue
            archetype_id = self.index.archetype_of(feat_id)
            if archetype_id is None or archetype_id in reported:
                continue
            archetype = self.index.get(archetype_id)
            dedication = archetype.dedication_feat_id
            if feat_id == dedication or dedication in held:
                continue
            reported.add(archetype.id)
            derived.add_issue(
                ValidationSeverity.ERROR,
                CATEGORY,
                f"You must take the {archetype.name} Dedication feat before taking "
                f"other {archetype.name} archetype feats",
                fix_action=f"AddFeat:{dedication}",
                data={"archetype_id": archetype.id, "feat_id": feat_id},
            )
