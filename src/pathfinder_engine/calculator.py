"""Character Calculator — derive a character sheet under a set of variant rules.

Given a base Character and the enabled variant rules (directly, or looked up
from a campaign), the calculator seeds a DerivedCharacter, runs every active
rule module through the fixed stage sequence, finalizes armor class, hit
points, initiative and encumbrance, and caches the result.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from .cache import CalculationCache
from .config import EngineConfig
from .models import (
    ALL_ABILITIES,
    DEFAULT_ABILITY_SCORE,
    Character,
    DerivedCharacter,
    ValidationSeverity,
    VariantRuleSet,
    ability_modifier,
)
from .results import FailureKind, Result
from .rules.modules.base import STAGE_SEQUENCE, RuleModule
from .rules.registry import RuleModuleRegistry
from .storage import CampaignRepository

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "derived-character"

# Base bulk limit before the Strength modifier
BASE_BULK_LIMIT = 5

# Hit points per level before the Constitution modifier
HP_PER_LEVEL = 8

MODULE_FAILURE_CATEGORY = "Rule Module"


def cache_key(character: Character, rules: VariantRuleSet) -> str:
    """Cache key: character id, last modification and sorted enabled rules."""
    return (
        f"{CACHE_KEY_PREFIX}:{character.id}:{character.updated_at.isoformat()}:"
        f"{','.join(rules.sorted_names())}"
    )


class CharacterCalculator:
    """Run the rule-module pipeline for a character."""

    def __init__(
        self,
        registry: RuleModuleRegistry,
        cache: CalculationCache,
        campaigns: CampaignRepository | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.campaigns = campaigns
        self.config = config or EngineConfig()

    async def compute(
        self,
        character: Character,
        *,
        campaign_id: str | None = None,
        variant_rules: VariantRuleSet | Mapping[str, Any] | None = None,
    ) -> Result[DerivedCharacter]:
        """Derive a character under a campaign's rules or an explicit rule map.

        Args:
            character: Base character aggregate.
            campaign_id: Campaign whose enabled variant rules apply.
            variant_rules: Explicit rules, as a VariantRuleSet or a
                ``name → enabled`` mapping. Unknown names are ignored.

        Returns:
            The derived character, or a failure: "Campaign not found" when the
            campaign does not exist, an infrastructure failure when the cache
            or repository breaks. Rule problems never fail the call; they are
            reported as validation issues on the derived character.
        """
        if (campaign_id is None) == (variant_rules is None):
            return Result.invalid("Provide exactly one of campaign_id or variant_rules")

        try:
            if campaign_id is not None:
                rules_result = await self._campaign_rules(campaign_id)
                if rules_result.is_failure:
                    return Result.from_failure(rules_result)
                rules = rules_result.unwrap()
            elif isinstance(variant_rules, VariantRuleSet):
                rules = variant_rules
            else:
                rules = VariantRuleSet.from_mapping(variant_rules)

            return await self._calculate_with_rules(character, rules)
        except Exception as e:
            logger.exception(
                f"Failed to calculate character {character.id}"
                + (f" for campaign {campaign_id}" if campaign_id else "")
            )
            return Result.infrastructure(f"Failed to calculate character: {e}")

    async def compute_by_id(self, character_id: str, campaign_id: str) -> Result[DerivedCharacter]:
        """Fetch a character from the repository and derive it under its campaign's rules."""
        if self.campaigns is None:
            return Result.invalid("No campaign repository configured")
        try:
            character_result = await self.campaigns.get_character(character_id)
        except Exception as e:
            logger.exception(f"Failed to load character {character_id}")
            return Result.infrastructure(f"Failed to load character: {e}")
        if character_result.is_failure:
            return Result.from_failure(character_result)
        return await self.compute(character_result.unwrap(), campaign_id=campaign_id)

    async def invalidate(self, character_id: str) -> int:
        """Drop every cached derivation of a character."""
        return await self.cache.invalidate(f"{CACHE_KEY_PREFIX}:{character_id}:")

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _campaign_rules(self, campaign_id: str) -> Result[VariantRuleSet]:
        if self.campaigns is None:
            return Result.invalid("No campaign repository configured")
        result = await self.campaigns.get_variant_rules(campaign_id)
        if result.error is not None and result.error.kind == FailureKind.NOT_FOUND:
            return Result.not_found("Campaign not found", campaign_id=campaign_id)
        return result

    async def _calculate_with_rules(
        self, character: Character, rules: VariantRuleSet
    ) -> Result[DerivedCharacter]:
        key = cache_key(character, rules)

        # 1. Cache lookup
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached derived character for {character.id}")
            return Result.success(cached.model_copy(deep=True))

        # 2. Seed the derived character
        derived = self._initialize(character)

        # 3. Active modules, ascending priority
        modules = sorted(self.registry.get_active_modules(rules), key=lambda m: m.priority)

        # 4. Run every module through the stage sequence
        for module in modules:
            self._run_module(module, character, derived)

        # 5. Derived numbers
        self._finalize(derived)

        # 6. Cache write; callers get their own copy on every hit
        await self.cache.set(key, derived.model_copy(deep=True), self.config.cache_ttl_seconds)
        logger.debug(
            f"Calculated {character.name} ({character.id}) with "
            f"{len(modules)} module(s), {len(derived.validation_issues)} issue(s)"
        )
        return Result.success(derived)

    def _run_module(self, module: RuleModule, character: Character, derived: DerivedCharacter) -> None:
        """Apply one module to every stage; a failure skips its remaining stages."""
        start = time.perf_counter()
        for stage in STAGE_SEQUENCE:
            try:
                module.apply(stage, character, derived)
            except Exception as e:
                logger.error(
                    f"Rule module {module.name} failed during {stage.value} "
                    f"for character {character.id}: {e}"
                )
                derived.add_issue(
                    ValidationSeverity.ERROR,
                    MODULE_FAILURE_CATEGORY,
                    f"Rule module '{module.name}' failed: {e}",
                    data={"module": module.name, "stage": stage.value},
                )
                return

        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms > self.config.slow_module_threshold_ms:
            logger.warning(f"Rule module {module.name} took {elapsed_ms:.1f}ms to execute")

    @staticmethod
    def _initialize(character: Character) -> DerivedCharacter:
        """Fresh derived character seeded from the base character.

        Abilities missing from the base character default to 10.
        """
        scores = {ability: DEFAULT_ABILITY_SCORE for ability in ALL_ABILITIES}
        scores.update(character.ability_scores)
        modifiers = {ability: ability_modifier(score) for ability, score in scores.items()}

        return DerivedCharacter(
            id=character.id,
            name=character.name,
            level=character.level,
            class_id=character.class_id,
            ability_scores=scores,
            ability_modifiers=modifiers,
            proficiencies=dict(character.proficiencies),
            proficiency_bonuses={},
            feat_slots={},
            available_feats=[feat.id for feat in character.feats],
            selected_feats=[feat.model_copy(deep=True) for feat in character.feats],
            bulk_limit=BASE_BULK_LIMIT + modifiers["strength"],
            current_bulk=sum(item.total_bulk for item in character.inventory),
            is_encumbered=False,
            validation_issues=[],
        )

    @staticmethod
    def _finalize(derived: DerivedCharacter) -> None:
        dex_mod = derived.ability_mod("dexterity")
        con_mod = derived.ability_mod("constitution")

        derived.armor_class = 10 + dex_mod + derived.proficiency_bonuses.get("armor", 0)
        derived.hit_points = derived.level * HP_PER_LEVEL + con_mod * derived.level
        derived.initiative = dex_mod
        derived.is_encumbered = (
            not derived.encumbrance_ignored and derived.current_bulk > derived.bulk_limit
        )


__all__ = ["CharacterCalculator", "cache_key", "CACHE_KEY_PREFIX"]
