"""
Tests for the engine data models.
"""

import pytest
from pydantic import ValidationError

from pathfinder_engine.models import (
    Archetype,
    Campaign,
    Character,
    DerivedCharacter,
    InventoryItem,
    Prerequisite,
    PrerequisiteKind,
    ProficiencyRank,
    ValidationSeverity,
    VariantRule,
    VariantRuleSet,
    ability_modifier,
    normalize_ability,
)


class TestAbilityHelpers:
    """Ability name normalization and modifiers."""

    @pytest.mark.parametrize("score, modifier", [
        (1, -5), (7, -2), (8, -1), (9, -1), (10, 0), (11, 0), (12, 1), (18, 4),
    ])
    def test_ability_modifier(self, score, modifier):
        assert ability_modifier(score) == modifier

    def test_normalize_ability(self):
        assert normalize_ability("STR") == "strength"
        assert normalize_ability("Dexterity") == "dexterity"
        assert normalize_ability(" int ") == "intelligence"


class TestVariantRules:
    """VariantRule parsing and VariantRuleSet construction."""

    @pytest.mark.parametrize("name", ["free-archetype", "FREE_ARCHETYPE", "FreeArchetype"])
    def test_parse_lenient_names(self, name):
        assert VariantRule.parse(name) is VariantRule.FREE_ARCHETYPE

    def test_parse_unknown_returns_none(self):
        assert VariantRule.parse("gestalt") is None

    def test_only_literal_true_enables(self):
        rules = VariantRuleSet.from_mapping({
            "free-archetype": True,
            "voluntary-flaws": False,
            "ignore-bulk-limit": 1,
            "proficiency-without-level": "true",
        })
        assert rules.enabled == frozenset({VariantRule.FREE_ARCHETYPE})

    def test_unknown_names_are_ignored(self, caplog):
        rules = VariantRuleSet.from_mapping({"gestalt": True, "dual-class": True})
        assert rules.enabled == frozenset({VariantRule.DUAL_CLASS})
        assert "gestalt" in caplog.text

    def test_sorted_names(self):
        rules = VariantRuleSet.of(VariantRule.VOLUNTARY_FLAWS, VariantRule.DUAL_CLASS)
        assert rules.sorted_names() == ["dual-class", "voluntary-flaws"]

    def test_empty_mapping(self):
        assert VariantRuleSet.from_mapping(None).enabled == frozenset()

    def test_to_mapping_lists_every_rule(self):
        mapping = VariantRuleSet.of(VariantRule.STAMINA_VARIANT).to_mapping()
        assert len(mapping) == len(VariantRule)
        assert mapping["stamina-variant"] is True
        assert mapping["free-archetype"] is False

    def test_rule_set_is_frozen(self):
        rules = VariantRuleSet()
        with pytest.raises(ValidationError):
            rules.enabled = frozenset({VariantRule.DUAL_CLASS})


class TestProficiencyRank:
    """ProficiencyRank ordering and parsing."""

    def test_ordering(self):
        assert (
            ProficiencyRank.UNTRAINED < ProficiencyRank.TRAINED < ProficiencyRank.EXPERT
            < ProficiencyRank.MASTER < ProficiencyRank.LEGENDARY
        )

    @pytest.mark.parametrize("value, rank", [
        ("Expert", ProficiencyRank.EXPERT),
        ("legendary", ProficiencyRank.LEGENDARY),
        (6, ProficiencyRank.MASTER),
        ("2", ProficiencyRank.TRAINED),
    ])
    def test_parse(self, value, rank):
        assert ProficiencyRank.parse(value) is rank

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            ProficiencyRank.parse("Grandmaster")


class TestPrerequisite:
    """Prerequisite kind normalization and rendering."""

    @pytest.mark.parametrize("raw, kind", [
        ("AbilityScore", PrerequisiteKind.ABILITY_SCORE),
        ("ability-score", PrerequisiteKind.ABILITY_SCORE),
        ("Skill", PrerequisiteKind.SKILL),
        ("FEAT", PrerequisiteKind.FEAT),
    ])
    def test_known_kinds_normalized(self, raw, kind):
        assert Prerequisite(kind=raw, target="x").kind == kind

    def test_unknown_kind_kept(self):
        assert Prerequisite(kind="Deity", target="Iomedae").kind == "Deity"

    def test_describe_with_alternative(self):
        prerequisite = Prerequisite(
            kind="ability-score", target="strength", value=14,
            alternative=Prerequisite(kind="ability-score", target="dexterity", value=14),
        )
        assert prerequisite.describe() == "strength >= 14 or dexterity >= 14"


class TestCharacter:
    """Base character validation."""

    def test_abbreviated_abilities_normalized(self):
        character = Character(name="Ezren", ability_scores={"INT": 18, "Dex": 12})
        assert character.ability_scores == {"intelligence": 18, "dexterity": 12}

    def test_unknown_ability_rejected(self):
        with pytest.raises(ValidationError):
            Character(name="Ezren", ability_scores={"luck": 12})

    def test_out_of_range_score_rejected(self):
        with pytest.raises(ValidationError):
            Character(name="Ezren", ability_scores={"strength": 0})

    def test_level_bounds(self):
        with pytest.raises(ValidationError):
            Character(name="Ezren", level=21)

    def test_proficiencies_parsed(self):
        character = Character(name="Kyra", proficiencies={"Medicine": "Trained", "Religion": 4})
        assert character.proficiencies == {
            "medicine": ProficiencyRank.TRAINED,
            "religion": ProficiencyRank.EXPERT,
        }

    def test_voluntary_flaws_normalized(self):
        character = Character(name="Kyra", voluntary_flaws=["STR", "Charisma"])
        assert character.voluntary_flaws == ["strength", "charisma"]

    def test_generated_ids_unique(self):
        assert Character(name="A").id != Character(name="B").id

    def test_inventory_total_bulk(self):
        assert InventoryItem(name="Arrows", bulk=0.1, quantity=20).total_bulk == pytest.approx(2.0)


class TestCampaign:
    def test_rule_set(self):
        campaign = Campaign(name="Age of Ashes", variant_rules={"free-archetype": True})
        assert campaign.rule_set().is_enabled(VariantRule.FREE_ARCHETYPE)


class TestDerivedCharacter:
    """Derived character helpers."""

    def test_is_valid_ignores_warnings(self):
        derived = DerivedCharacter(id="c", name="Seelah", level=1)
        derived.add_issue(ValidationSeverity.WARNING, "Test", "just a warning")
        assert derived.is_valid

        derived.add_issue(ValidationSeverity.ERROR, "Test", "broken")
        assert not derived.is_valid
        assert len(derived.errors) == 1

    def test_set_ability_score_updates_modifier(self):
        derived = DerivedCharacter(id="c", name="Seelah", level=1)
        derived.set_ability_score("STR", 16)
        assert derived.ability_score("strength") == 16
        assert derived.ability_mod("Strength") == 3

    def test_add_proficiency_bonus_accumulates(self):
        derived = DerivedCharacter(id="c", name="Seelah", level=1)
        derived.add_proficiency_bonus("Armor", 1)
        derived.add_proficiency_bonus("armor", 2)
        assert derived.proficiency_bonuses == {"armor": 3}


class TestArchetype:
    def test_all_feat_ids_include_dedication(self):
        archetype = Archetype(
            id="medic", name="Medic", type="general",
            dedication_feat_id="medic-dedication", feat_ids=["battle-medicine"],
        )
        assert archetype.all_feat_ids == {"medic-dedication", "battle-medicine"}
