"""
Tests for the built-in rule modules, exercised stage by stage.
"""

import pytest

from pathfinder_engine.archetypes import ArchetypeIndex
from pathfinder_engine.models import Character, ProficiencyRank, ValidationSeverity
from pathfinder_engine.rules.modules import (
    STAGE_SEQUENCE,
    AutomaticBonusProgressionModule,
    FreeArchetypeModule,
    IgnoreBulkLimitModule,
    ProficiencyWithoutLevelModule,
    RuleModule,
    Stage,
    VoluntaryFlawsModule,
)
from pathfinder_engine.rules.modules.automatic_bonus_progression import (
    armor_potency_bonus,
    attack_potency_bonus,
    resilient_bonus,
    striking_dice,
)


def run_all_stages(module: RuleModule, character: Character, derived) -> None:
    for stage in STAGE_SEQUENCE:
        module.apply(stage, character, derived)


def issues_of(derived, severity: ValidationSeverity):
    return [i for i in derived.validation_issues if i.severity == severity]


class TestStageDispatch:
    """RuleModule.apply dispatches to on_<stage> handlers."""

    def test_stage_order(self):
        assert [s.value for s in STAGE_SEQUENCE] == [
            "scores", "proficiency", "feats", "slots", "encumbrance", "validation",
        ]

    def test_missing_handler_is_noop(self, make_character):
        derived = make_character()
        IgnoreBulkLimitModule().apply(Stage.SCORES, Character(name="x"), derived)
        assert derived.validation_issues == []


class TestVoluntaryFlaws:
    """Voluntary Flaws module."""

    def test_paired_flaws(self, make_character):
        character = Character(name="Amiri", voluntary_flaws=["charisma", "charisma"])
        derived = make_character(scores={"charisma": 12})
        run_all_stages(VoluntaryFlawsModule(), character, derived)

        assert derived.ability_scores["charisma"] == 8
        assert derived.ability_modifiers["charisma"] == -1
        assert not issues_of(derived, ValidationSeverity.ERROR)
        assert not issues_of(derived, ValidationSeverity.WARNING)
        info = issues_of(derived, ValidationSeverity.INFO)[0]
        assert info.data["additional_boosts"] == 1

    def test_score_below_minimum_is_error(self, make_character):
        character = Character(name="Amiri", voluntary_flaws=["charisma", "charisma"])
        derived = make_character(scores={"charisma": 10})
        run_all_stages(VoluntaryFlawsModule(), character, derived)

        errors = issues_of(derived, ValidationSeverity.ERROR)
        assert len(errors) == 1
        assert errors[0].fix_action == "RemoveVoluntaryFlaw:charisma"

    def test_unpaired_flaw_warns(self, make_character):
        character = Character(name="Amiri", voluntary_flaws=["wisdom"])
        derived = make_character(scores={"wisdom": 14})
        run_all_stages(VoluntaryFlawsModule(), character, derived)

        assert derived.ability_scores["wisdom"] == 12
        assert len(issues_of(derived, ValidationSeverity.WARNING)) == 1

    def test_no_flaws_no_issues(self, make_character):
        derived = make_character()
        run_all_stages(VoluntaryFlawsModule(), Character(name="Amiri"), derived)
        assert derived.validation_issues == []


class TestIgnoreBulkLimit:
    def test_sets_flag_and_reports(self, make_character):
        derived = make_character()
        derived.current_bulk = 9
        derived.bulk_limit = 5
        derived.is_encumbered = True
        run_all_stages(IgnoreBulkLimitModule(), Character(name="Harsk"), derived)

        assert derived.encumbrance_ignored
        assert not derived.is_encumbered
        info = issues_of(derived, ValidationSeverity.INFO)[0]
        assert info.data["would_be_encumbered"] is True


class TestProficiencyWithoutLevel:
    def test_bonus_is_rank_value(self, make_character):
        derived = make_character(
            level=10,
            proficiencies={"athletics": ProficiencyRank.EXPERT, "stealth": ProficiencyRank.TRAINED},
        )
        run_all_stages(ProficiencyWithoutLevelModule(), Character(name="Merisiel"), derived)
        assert derived.proficiency_bonuses == {"athletics": 4, "stealth": 2}


class TestAutomaticBonusProgression:
    """ABP tables and proficiency contribution."""

    @pytest.mark.parametrize("level, attack, armor, resilient, dice", [
        (1, 0, 0, 0, 0),
        (4, 1, 0, 0, 1),
        (5, 1, 1, 0, 1),
        (8, 1, 1, 1, 1),
        (11, 2, 2, 2, 1),
        (12, 2, 2, 2, 2),
        (16, 3, 2, 2, 2),
        (20, 3, 3, 3, 3),
    ])
    def test_tables(self, level, attack, armor, resilient, dice):
        assert attack_potency_bonus(level) == attack
        assert armor_potency_bonus(level) == armor
        assert resilient_bonus(level) == resilient
        assert striking_dice(level) == dice

    def test_proficiency_bonuses(self, make_character):
        derived = make_character(level=11)
        run_all_stages(AutomaticBonusProgressionModule(), Character(name="Kyra", level=11), derived)
        assert derived.proficiency_bonuses == {
            "armor": 2, "attack": 2, "fortitude": 2, "reflex": 2, "will": 2,
        }
        assert issues_of(derived, ValidationSeverity.INFO)[0].data["striking_dice"] == 1

    def test_low_level_adds_nothing(self, make_character):
        derived = make_character(level=1)
        run_all_stages(AutomaticBonusProgressionModule(), Character(name="Kyra"), derived)
        assert derived.proficiency_bonuses == {}


class TestFreeArchetype:
    """Free Archetype slots and pick validation."""

    def test_slots_at_even_levels(self, make_character):
        derived = make_character(level=7)
        run_all_stages(FreeArchetypeModule(), Character(name="Seoni", level=7), derived)
        assert [s.level for s in derived.feat_slots["Archetype"]] == [2, 4, 6]
        assert all(s.category == "Free Archetype" for s in derived.feat_slots["Archetype"])

    def test_picks_fill_slots(self, make_character):
        character = Character(name="Seoni", level=4, free_archetype_picks={2: "medic-dedication"})
        derived = make_character(level=4, feats=["medic-dedication"])
        run_all_stages(FreeArchetypeModule(), character, derived)

        slots = {s.level: s.selected_feat_id for s in derived.feat_slots["Archetype"]}
        assert slots == {2: "medic-dedication", 4: None}
        assert derived.is_valid

    def test_pick_at_odd_level_is_error(self, make_character):
        character = Character(name="Seoni", level=4, free_archetype_picks={3: "medic-dedication"})
        derived = make_character(level=4, feats=["medic-dedication"])
        run_all_stages(FreeArchetypeModule(), character, derived)
        assert len(derived.errors) == 1

    def test_pick_not_held_warns(self, make_character):
        character = Character(name="Seoni", level=2, free_archetype_picks={2: "medic-dedication"})
        derived = make_character(level=2)
        run_all_stages(FreeArchetypeModule(), character, derived)
        assert len(issues_of(derived, ValidationSeverity.WARNING)) == 1

    def test_level_one_has_no_slots(self, make_character):
        derived = make_character(level=1)
        run_all_stages(FreeArchetypeModule(), Character(name="Seoni"), derived)
        assert derived.feat_slots["Archetype"] == []


class TestFreeArchetypeDedications:
    """Slotted archetype feats need their archetype's dedication."""

    @pytest.fixture
    def module(self, catalogue) -> FreeArchetypeModule:
        return FreeArchetypeModule(ArchetypeIndex(catalogue.archetypes))

    def test_missing_dedication_is_error(self, module, make_character):
        character = Character(name="Valeros", level=4, free_archetype_picks={2: "basic-maneuver"})
        derived = make_character(level=4, feats=["basic-maneuver"])
        run_all_stages(module, character, derived)

        assert len(derived.errors) == 1
        error = derived.errors[0]
        assert error.message == (
            "You must take the Fighter Dedication feat before taking other Fighter archetype feats"
        )
        assert error.fix_action == "AddFeat:fighter-dedication"
        assert error.data["archetype_id"] == "fighter-multiclass"

    def test_dedication_held_elsewhere(self, module, make_character):
        character = Character(name="Valeros", level=4, free_archetype_picks={4: "basic-maneuver"})
        derived = make_character(level=4, feats=["fighter-dedication", "basic-maneuver"])
        run_all_stages(module, character, derived)
        assert derived.is_valid

    def test_dedication_in_slot(self, module, make_character):
        character = Character(
            name="Valeros", level=4,
            free_archetype_picks={2: "fighter-dedication", 4: "basic-maneuver"},
        )
        derived = make_character(level=4, feats=["fighter-dedication", "basic-maneuver"])
        run_all_stages(module, character, derived)
        assert derived.is_valid

    def test_one_error_per_archetype(self, module, make_character):
        character = Character(
            name="Valeros", level=6,
            free_archetype_picks={2: "basic-maneuver", 4: "fighter-resiliency"},
        )
        derived = make_character(level=6, feats=["basic-maneuver", "fighter-resiliency"])
        run_all_stages(module, character, derived)
        assert len(derived.errors) == 1

    def test_non_archetype_feat_ignored(self, module, make_character):
        character = Character(name="Valeros", level=2, free_archetype_picks={2: "toughness"})
        derived = make_character(level=2, feats=["toughness"])
        run_all_stages(module, character, derived)
        assert derived.is_valid

    def test_without_index_dedications_unchecked(self, make_character):
        character = Character(name="Valeros", level=4, free_archetype_picks={2: "basic-maneuver"})
        derived = make_character(level=4, feats=["basic-maneuver"])
        run_all_stages(FreeArchetypeModule(), character, derived)
        assert derived.is_valid
