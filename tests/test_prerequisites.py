"""
Tests for PrerequisiteEvaluator.
"""

import pytest

from pathfinder_engine.models import Feat, Prerequisite, ProficiencyRank
from pathfinder_engine.rules.prerequisites import PrerequisiteEvaluator


def ability(target: str, value, operator: str = ">=", alternative=None) -> Prerequisite:
    return Prerequisite(
        kind="ability-score", target=target, operator=operator, value=value,
        alternative=alternative,
    )


class TestAbilityScore:
    """Ability score clauses."""

    @pytest.mark.parametrize("strength, expected", [(10, False), (12, False), (13, True), (16, True)])
    def test_strength_13_boundary(self, evaluator, make_character, strength, expected):
        character = make_character(scores={"strength": strength})
        assert evaluator.evaluate(ability("Strength", 13), character) is expected

    @pytest.mark.parametrize("operator, value, expected", [
        (">", 14, False),
        ("=", 14, True),
        ("<=", 13, False),
        ("<", 15, True),
    ])
    def test_operators(self, evaluator, make_character, operator, value, expected):
        character = make_character(scores={"dexterity": 14})
        assert evaluator.evaluate(ability("dexterity", value, operator), character) is expected

    def test_abbreviated_target(self, evaluator, make_character):
        character = make_character(scores={"intelligence": 14})
        assert evaluator.evaluate(ability("INT", 14), character)

    def test_unparsable_value_fails(self, evaluator, make_character):
        assert not evaluator.evaluate(ability("strength", "lots"), make_character())

    def test_unknown_operator_fails(self, evaluator, make_character):
        assert not evaluator.evaluate(ability("strength", 8, "~"), make_character())

    def test_unknown_ability_fails(self, evaluator, make_character):
        assert not evaluator.evaluate(ability("luck", 8), make_character())

    def test_alternative_clause(self, evaluator, make_character):
        """Strength 14 or Dexterity 14."""
        prerequisite = ability("strength", 14, alternative=ability("dexterity", 14))
        assert evaluator.evaluate(prerequisite, make_character(scores={"dexterity": 16}))
        assert not evaluator.evaluate(prerequisite, make_character(scores={"dexterity": 12}))


class TestSkill:
    """Skill rank clauses."""

    def test_trained_default(self, evaluator, make_character):
        character = make_character(proficiencies={"medicine": ProficiencyRank.TRAINED})
        assert evaluator.evaluate(Prerequisite(kind="skill", target="Medicine"), character)

    def test_rank_too_low(self, evaluator, make_character):
        character = make_character(proficiencies={"medicine": ProficiencyRank.TRAINED})
        prerequisite = Prerequisite(kind="skill", target="medicine", value="Expert")
        assert not evaluator.evaluate(prerequisite, character)

    def test_higher_rank_satisfies(self, evaluator, make_character):
        character = make_character(proficiencies={"medicine": ProficiencyRank.MASTER})
        prerequisite = Prerequisite(kind="skill", target="medicine", value="Expert")
        assert evaluator.evaluate(prerequisite, character)

    def test_missing_skill_fails(self, evaluator, make_character):
        assert not evaluator.evaluate(Prerequisite(kind="skill", target="medicine"), make_character())

    def test_unknown_rank_fails(self, evaluator, make_character):
        character = make_character(proficiencies={"medicine": ProficiencyRank.LEGENDARY})
        prerequisite = Prerequisite(kind="skill", target="medicine", value="Mythic")
        assert not evaluator.evaluate(prerequisite, character)


class TestLevelAndFeat:
    """Level and feat clauses."""

    def test_level(self, evaluator, make_character):
        prerequisite = Prerequisite(kind="level", value=4)
        assert not evaluator.evaluate(prerequisite, make_character(level=3))
        assert evaluator.evaluate(prerequisite, make_character(level=4))

    def test_feat_by_id(self, evaluator, make_character):
        character = make_character(feats=["wizard-dedication"])
        assert evaluator.evaluate(Prerequisite(kind="feat", target="wizard-dedication"), character)

    def test_feat_by_name_case_insensitive(self, evaluator, make_character):
        character = make_character()
        character.selected_feats.append(Feat(id="wizard-dedication", name="Wizard Dedication"))
        assert evaluator.evaluate(Prerequisite(kind="feat", target="wizard dedication"), character)

    def test_missing_feat(self, evaluator, make_character):
        assert not evaluator.evaluate(Prerequisite(kind="feat", target="Toughness"), make_character())


class TestUnknownKinds:
    """Unknown clause kinds follow the configured policy."""

    def test_allow_by_default(self, evaluator, make_character, caplog):
        prerequisite = Prerequisite(kind="Deity", target="Iomedae")
        assert evaluator.evaluate(prerequisite, make_character())
        assert "Unknown prerequisite type" in caplog.text

    def test_deny_policy(self, make_character):
        evaluator = PrerequisiteEvaluator(unknown_policy="deny")
        assert not evaluator.evaluate(Prerequisite(kind="Deity", target="Iomedae"), make_character())


class TestCollections:
    def test_evaluate_all_and_unmet(self, evaluator, make_character):
        character = make_character(level=2, scores={"strength": 14})
        met = ability("strength", 14)
        unmet = Prerequisite(kind="level", value=6)

        assert evaluator.evaluate_all([met], character)
        assert not evaluator.evaluate_all([met, unmet], character)
        assert evaluator.unmet([met, unmet], character) == [unmet]

    def test_empty_list_is_satisfied(self, evaluator, make_character):
        assert evaluator.evaluate_all([], make_character())
