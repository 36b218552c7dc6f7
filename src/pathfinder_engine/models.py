"""
Data models for the Pathfinder rule-resolution engine.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from shortuuid import random

logger = logging.getLogger(__name__)


# Ability abbreviation → full name
ABILITY_NAMES = {
    "STR": "strength",
    "DEX": "dexterity",
    "CON": "constitution",
    "INT": "intelligence",
    "WIS": "wisdom",
    "CHA": "charisma",
}

ALL_ABILITIES = tuple(ABILITY_NAMES.values())

DEFAULT_ABILITY_SCORE = 10


def normalize_key(name: str) -> str:
    """Normalize a skill/proficiency/category name for lookups."""
    return name.strip().lower().replace("_", " ")


def normalize_ability(name: str) -> str:
    """Map 'STR', 'Strength' or 'strength' to the canonical 'strength'."""
    stripped = name.strip()
    return ABILITY_NAMES.get(stripped.upper(), stripped.lower())


def ability_modifier(score: int) -> int:
    """Ability modifier for a raw score (floor division, 10-11 → +0)."""
    return (score - 10) // 2


# =============================================================================
# Enumerations
# =============================================================================

class VariantRule(str, Enum):
    """Optional rule toggles a campaign may enable."""
    ANCESTRY_PARAGON = "ancestry-paragon"
    AUTOMATIC_BONUS_PROGRESSION = "automatic-bonus-progression"
    DUAL_CLASS = "dual-class"
    FREE_ARCHETYPE = "free-archetype"
    GRADUAL_ABILITY_BOOSTS = "gradual-ability-boosts"
    PROFICIENCY_WITHOUT_LEVEL = "proficiency-without-level"
    VOLUNTARY_FLAWS = "voluntary-flaws"
    IGNORE_BULK_LIMIT = "ignore-bulk-limit"
    STAMINA_VARIANT = "stamina-variant"

    @classmethod
    def parse(cls, name: str) -> "VariantRule | None":
        """Resolve 'free-archetype', 'FREE_ARCHETYPE' or 'FreeArchetype'.

        Returns None for names outside the enumeration.
        """
        wanted = "".join(ch for ch in name.lower() if ch.isalnum())
        for rule in cls:
            if rule.value.replace("-", "") == wanted:
                return rule
        return None


class ProficiencyRank(IntEnum):
    """Proficiency ranks; the value is the rank's proficiency bonus."""
    UNTRAINED = 0
    TRAINED = 2
    EXPERT = 4
    MASTER = 6
    LEGENDARY = 8

    @classmethod
    def parse(cls, value: "str | int | ProficiencyRank") -> "ProficiencyRank":
        """Parse a rank from its name ('Expert') or numeric value (4).

        Raises:
            ValueError: If the value names no rank.
        """
        if isinstance(value, ProficiencyRank):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if text.lstrip("-").isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown proficiency rank: {value!r}") from None


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""
    INFO = "info"        # Informational note
    WARNING = "warning"  # Possible issue, but allowed
    ERROR = "error"      # Character cannot be rules-legal


class PrerequisiteKind(str, Enum):
    """Prerequisite clause types the evaluator understands."""
    ABILITY_SCORE = "ability-score"
    SKILL = "skill"
    LEVEL = "level"
    FEAT = "feat"


class ArchetypeType(str, Enum):
    """Archetype families."""
    MULTICLASS = "multiclass"
    CLASS = "class"
    GENERAL = "general"


# =============================================================================
# Variant rules
# =============================================================================

class VariantRuleSet(BaseModel):
    """Immutable set of enabled variant rules."""
    model_config = ConfigDict(frozen=True)

    enabled: frozenset[VariantRule] = Field(default_factory=frozenset)

    @classmethod
    def from_mapping(cls, rules: Mapping[str, Any] | None) -> "VariantRuleSet":
        """Build a rule set from a ``name → enabled`` mapping.

        Only entries whose value is literally ``True`` enable a rule.
        Unrecognised names are ignored and logged.
        """
        enabled: set[VariantRule] = set()
        for name, value in (rules or {}).items():
            rule = name if isinstance(name, VariantRule) else VariantRule.parse(str(name))
            if rule is None:
                logger.warning(f"Ignoring unknown variant rule '{name}'")
                continue
            if value is True:
                enabled.add(rule)
        return cls(enabled=frozenset(enabled))

    @classmethod
    def of(cls, *rules: VariantRule) -> "VariantRuleSet":
        return cls(enabled=frozenset(rules))

    def is_enabled(self, rule: VariantRule) -> bool:
        return rule in self.enabled

    def sorted_names(self) -> list[str]:
        """Enabled rule names in sorted order (stable cache key component)."""
        return sorted(rule.value for rule in self.enabled)

    def to_mapping(self) -> dict[str, bool]:
        return {rule.value: rule in self.enabled for rule in VariantRule}


# =============================================================================
# Rule content
# =============================================================================

class Prerequisite(BaseModel):
    """A single testable condition gating a feat or archetype.

    ``kind`` is normalized to a ``PrerequisiteKind`` value ('AbilityScore'
    becomes 'ability-score'); other strings are kept as given and the
    evaluator applies its unknown-type policy to them.
    """
    kind: str
    target: str = ""
    operator: str = ">="
    value: int | str | None = None
    alternative: Prerequisite | None = None

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        if isinstance(v, PrerequisiteKind):
            return v.value
        if isinstance(v, str):
            wanted = "".join(ch for ch in v.lower() if ch.isalnum())
            for kind in PrerequisiteKind:
                if kind.value.replace("-", "") == wanted:
                    return kind.value
            return v.strip()
        return v

    def describe(self) -> str:
        """Short human-readable rendering, e.g. 'strength >= 14'."""
        if self.kind == PrerequisiteKind.FEAT:
            text = f"feat {self.target}"
        elif self.kind == PrerequisiteKind.LEVEL:
            text = f"level >= {self.value}"
        else:
            text = f"{self.target} {self.operator} {self.value}"
        if self.alternative is not None:
            text = f"{text} or {self.alternative.describe()}"
        return text


class Feat(BaseModel):
    """Feat definition (opaque rules content)."""
    id: str
    name: str
    level: int = Field(default=1, ge=1, le=20)
    traits: list[str] = Field(default_factory=list)
    prerequisites: list[Prerequisite] = Field(default_factory=list)
    description: str = ""

    def has_trait(self, trait: str) -> bool:
        return trait.lower() in (t.lower() for t in self.traits)


class SpellcastingProgression(BaseModel):
    """Limited spellcasting granted by a multiclass archetype."""
    tradition: str
    spellcasting_ability: str
    max_spell_level: int = Field(default=0, ge=0, le=10)
    prepared_casting: bool = False


class Archetype(BaseModel):
    """Named progression of feats gated behind a dedication feat."""
    id: str
    name: str
    description: str = ""
    type: ArchetypeType = ArchetypeType.MULTICLASS
    prerequisites: list[Prerequisite] = Field(default_factory=list)
    dedication_feat_id: str
    feat_ids: list[str] = Field(default_factory=list)
    associated_class_id: str | None = None
    spellcasting: SpellcastingProgression | None = None
    traits: list[str] = Field(default_factory=list)
    source: str = "Core Rulebook"
    rarity: str = "Common"
    requires_two_feats_before_new_archetype: bool = True

    @property
    def all_feat_ids(self) -> set[str]:
        """Feat ids owned by this archetype, dedication included."""
        return {self.dedication_feat_id, *self.feat_ids}


class MulticlassSpellcasting(BaseModel):
    """Computed multiclass spellcasting for one archetype at one level."""
    tradition: str
    spellcasting_ability: str
    prepared_casting: bool
    max_spell_level: int
    spell_slots: dict[int, int] = Field(default_factory=dict)
    spells_known: dict[int, int] = Field(default_factory=dict)


class ArchetypeBenefits(BaseModel):
    """Benefits an archetype grants at a given character level."""
    spellcasting: MulticlassSpellcasting | None = None
    spell_slots: dict[int, int] = Field(default_factory=dict)


# =============================================================================
# Base character
# =============================================================================

class InventoryItem(BaseModel):
    """Carried item, only bulk matters to the engine."""
    id: str = Field(default_factory=lambda: random(length=8))
    name: str
    bulk: float = Field(default=0.0, ge=0.0)
    quantity: int = Field(default=1, ge=0)

    @property
    def total_bulk(self) -> float:
        return self.bulk * self.quantity


class Character(BaseModel):
    """Base character aggregate as stored by the campaign repository."""
    id: str = Field(default_factory=lambda: random(length=8))
    name: str
    level: int = Field(default=1, ge=1, le=20)
    class_id: str | None = None
    updated_at: datetime = Field(default_factory=datetime.now)
    ability_scores: dict[str, int] = Field(default_factory=dict)
    proficiencies: dict[str, ProficiencyRank] = Field(default_factory=dict)
    feats: list[Feat] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)
    voluntary_flaws: list[str] = Field(default_factory=list)
    free_archetype_picks: dict[int, str] = Field(
        default_factory=dict,
        description="Free Archetype feat picks, character level → feat id"
    )

    @field_validator("ability_scores")
    @classmethod
    def normalize_abilities(cls, v: dict[str, int]) -> dict[str, int]:
        normalized: dict[str, int] = {}
        for name, score in v.items():
            ability = normalize_ability(name)
            if ability not in ALL_ABILITIES:
                raise ValueError(
                    f"Unknown ability: '{name}'. Valid: {', '.join(ALL_ABILITIES)}"
                )
            if not 1 <= score <= 30:
                raise ValueError(f"Ability score for {ability} out of range: {score}")
            normalized[ability] = score
        return normalized

    @field_validator("proficiencies", mode="before")
    @classmethod
    def normalize_proficiencies(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {normalize_key(k): ProficiencyRank.parse(rank) for k, rank in v.items()}
        return v

    @field_validator("voluntary_flaws")
    @classmethod
    def normalize_flaws(cls, v: list[str]) -> list[str]:
        return [normalize_ability(name) for name in v]


class Campaign(BaseModel):
    """Campaign as seen by the engine: its variant rules and characters."""
    id: str = Field(default_factory=lambda: random(length=8))
    name: str
    variant_rules: dict[str, bool] = Field(default_factory=dict)
    characters: dict[str, Character] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.now)

    def rule_set(self) -> VariantRuleSet:
        return VariantRuleSet.from_mapping(self.variant_rules)


# =============================================================================
# Derived character
# =============================================================================

class FeatSlot(BaseModel):
    """A feat slot opened at a character level."""
    type: str
    level: int
    category: str
    selected_feat_id: str | None = None
    is_required: bool = False


class ValidationIssue(BaseModel):
    """A single business-rule issue found while deriving a character."""
    severity: ValidationSeverity
    category: str
    message: str
    fix_action: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class DerivedCharacter(BaseModel):
    """Computed character sheet for one character under one rule set.

    Built fresh per calculation and mutated only while the rule pipeline
    runs. Never persisted; the calculation cache holds it briefly.
    """
    id: str
    name: str
    level: int
    class_id: str | None = None

    ability_scores: dict[str, int] = Field(default_factory=dict)
    ability_modifiers: dict[str, int] = Field(default_factory=dict)

    proficiencies: dict[str, ProficiencyRank] = Field(default_factory=dict)
    proficiency_bonuses: dict[str, int] = Field(default_factory=dict)

    feat_slots: dict[str, list[FeatSlot]] = Field(default_factory=dict)
    available_feats: list[str] = Field(default_factory=list)
    selected_feats: list[Feat] = Field(default_factory=list)

    armor_class: int = 0
    hit_points: int = 0
    initiative: int = 0

    bulk_limit: float = 0
    current_bulk: float = 0
    is_encumbered: bool = False
    encumbrance_ignored: bool = False

    validation_issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True if no ERROR-level issues were recorded."""
        return not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.validation_issues if i.severity == ValidationSeverity.ERROR]

    @property
    def selected_feat_ids(self) -> list[str]:
        return [feat.id for feat in self.selected_feats]

    def has_feat(self, feat_id: str) -> bool:
        return any(feat.id == feat_id for feat in self.selected_feats)

    def ability_score(self, name: str) -> int | None:
        return self.ability_scores.get(normalize_ability(name))

    def ability_mod(self, name: str) -> int:
        return self.ability_modifiers.get(normalize_ability(name), 0)

    def set_ability_score(self, name: str, score: int) -> None:
        """Set a score and keep its modifier in sync."""
        ability = normalize_ability(name)
        self.ability_scores[ability] = score
        self.ability_modifiers[ability] = ability_modifier(score)

    def recalculate_modifiers(self) -> None:
        self.ability_modifiers = {
            name: ability_modifier(score) for name, score in self.ability_scores.items()
        }

    def proficiency_rank(self, name: str) -> ProficiencyRank | None:
        return self.proficiencies.get(normalize_key(name))

    def add_proficiency_bonus(self, name: str, amount: int) -> None:
        key = normalize_key(name)
        self.proficiency_bonuses[key] = self.proficiency_bonuses.get(key, 0) + amount

    def add_issue(
        self,
        severity: ValidationSeverity,
        category: str,
        message: str,
        fix_action: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> ValidationIssue:
        issue = ValidationIssue(
            severity=severity,
            category=category,
            message=message,
            fix_action=fix_action,
            data=data or {},
        )
        self.validation_issues.append(issue)
        return issue


__all__ = [
    "ABILITY_NAMES",
    "ALL_ABILITIES",
    "DEFAULT_ABILITY_SCORE",
    "normalize_key",
    "normalize_ability",
    "ability_modifier",
    "VariantRule",
    "VariantRuleSet",
    "ProficiencyRank",
    "ValidationSeverity",
    "PrerequisiteKind",
    "ArchetypeType",
    "Prerequisite",
    "Feat",
    "SpellcastingProgression",
    "Archetype",
    "MulticlassSpellcasting",
    "ArchetypeBenefits",
    "InventoryItem",
    "Character",
    "Campaign",
    "FeatSlot",
    "ValidationIssue",
    "DerivedCharacter",
]
