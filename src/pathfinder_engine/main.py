"""
Pathfinder Rules MCP Server
Derives character sheets under campaign variant rules and checks archetype
legality, exposed as FastMCP tools.
"""

import logging
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from .archetypes import ArchetypeIndex, ArchetypeService, InMemoryArchetypeRepository, load_default_catalogue
from .cache import InMemoryCalculationCache
from .calculator import CharacterCalculator
from .config import EngineConfig
from .logutils import configure_logging
from .models import DerivedCharacter, VariantRule
from .results import Result
from .rules import PrerequisiteEvaluator, default_registry
from .storage import JsonCampaignRepository

logger = logging.getLogger("pathfinder-engine")

config = EngineConfig.from_env()
configure_logging(config.log_level)

data_path = (config.data_dir or Path.cwd()).resolve()
logger.debug(f"📂 Data path: {data_path}")

evaluator = PrerequisiteEvaluator(config.unknown_prerequisite_policy)

# Archetype catalogue
if config.archetype_catalogue is not None:
    archetypes = InMemoryArchetypeRepository.from_yaml(config.archetype_catalogue, evaluator)
else:
    archetypes = load_default_catalogue(evaluator)
archetype_index = ArchetypeIndex(archetypes.archetypes)
archetype_service = ArchetypeService(archetypes, evaluator, archetype_index)
logger.debug("📚 Archetype catalogue loaded")

# Rule pipeline
registry = default_registry(archetype_index)
cache = InMemoryCalculationCache()
campaigns = JsonCampaignRepository(data_dir=data_path)
calculator = CharacterCalculator(registry, cache, campaigns, config)
logger.debug("✅ Calculator initialized")

mcp = FastMCP(
    name="pathfinder-engine"
)


# ----------------------------------------------------------------------
# Formatting helpers
# ----------------------------------------------------------------------

def _format_failure(result: Result) -> str:
    return f"Error: {result.error.message}"


def _format_derived(derived: DerivedCharacter) -> str:
    """Render a derived character as a markdown summary."""
    lines = [
        f"**{derived.name}** (Level {derived.level}{f' {derived.class_id}' if derived.class_id else ''})",
        f"**ID:** {derived.id}",
        "",
        f"**AC:** {derived.armor_class}  **HP:** {derived.hit_points}  "
        f"**Initiative:** {derived.initiative:+d}",
        "",
        "**Ability Scores:**",
    ]
    for ability, score in derived.ability_scores.items():
        lines.append(f"- {ability.title()}: {score} ({derived.ability_mod(ability):+d})")

    if derived.proficiency_bonuses:
        lines.append("")
        lines.append("**Proficiency Bonuses:**")
        for name, bonus in sorted(derived.proficiency_bonuses.items()):
            lines.append(f"- {name}: {bonus:+d}")

    for slot_type, slots in derived.feat_slots.items():
        lines.append("")
        lines.append(f"**{slot_type} Feat Slots:**")
        for slot in slots:
            lines.append(f"- Level {slot.level}: {slot.selected_feat_id or '(empty)'}")

    bulk_state = "ignored" if derived.encumbrance_ignored else (
        "encumbered" if derived.is_encumbered else "ok"
    )
    lines.append("")
    lines.append(f"**Bulk:** {derived.current_bulk:g} / {derived.bulk_limit:g} ({bulk_state})")

    if derived.validation_issues:
        lines.append("")
        lines.append("**Validation:**")
        for issue in derived.validation_issues:
            fix = f" → {issue.fix_action}" if issue.fix_action else ""
            lines.append(f"- [{issue.severity.value}] {issue.category}: {issue.message}{fix}")

    return "\n".join(lines)


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------

@mcp.tool
def list_variant_rules() -> str:
    """List the variant rules and the rule modules that implement them."""
    lines = ["**Variant Rules:**"]
    for rule in VariantRule:
        modules = [m.name for m in registry.modules if m.variant_rule == rule]
        handler = ", ".join(modules) if modules else "no module"
        lines.append(f"- `{rule.value}` ({handler})")
    return "\n".join(lines)


@mcp.tool
async def calculate_character(
    character_id: Annotated[str, Field(description="Character ID")],
    campaign_id: Annotated[str, Field(description="Campaign whose variant rules apply")],
) -> str:
    """Derive a character sheet under the campaign's variant rules."""
    result = await calculator.compute_by_id(character_id, campaign_id)
    if result.is_failure:
        return _format_failure(result)
    return _format_derived(result.unwrap())


@mcp.tool
def validate_module_chain() -> str:
    """Check the registered rule modules for priority conflicts."""
    result = registry.validate_module_chain()
    if result.is_failure:
        return _format_failure(result)
    return result.unwrap()


@mcp.tool
async def check_archetype_feat(
    character_id: Annotated[str, Field(description="Character ID")],
    campaign_id: Annotated[str, Field(description="Campaign whose variant rules apply")],
    archetype_id: Annotated[str, Field(description="Archetype ID, e.g. 'wizard-multiclass'")],
    feat_id: Annotated[str, Field(description="Feat ID to check, e.g. 'wizard-dedication'")],
) -> str:
    """Check whether a character may take a feat from an archetype."""
    derived = await calculator.compute_by_id(character_id, campaign_id)
    if derived.is_failure:
        return _format_failure(derived)

    result = await archetype_service.can_take_archetype_feat(archetype_id, feat_id, derived.unwrap())
    if result.is_failure:
        return _format_failure(result)
    verdict = "can take" if result.unwrap() else "cannot take"
    return f"{derived.unwrap().name} {verdict} '{feat_id}' from '{archetype_id}'"


@mcp.tool
async def validate_archetypes(
    character_id: Annotated[str, Field(description="Character ID")],
    campaign_id: Annotated[str, Field(description="Campaign whose variant rules apply")],
) -> str:
    """Validate every archetype a character has entered."""
    derived = await calculator.compute_by_id(character_id, campaign_id)
    if derived.is_failure:
        return _format_failure(derived)

    result = await archetype_service.validate_all_archetypes(derived.unwrap())
    if result.is_failure:
        return _format_failure(result)
    issues = result.unwrap()
    if not issues:
        return f"All archetypes of {derived.unwrap().name} are valid"
    return "\n".join(f"- [{i.severity.value}] {i.message}" for i in issues)


@mcp.tool
async def multiclass_spellcasting(
    archetype_id: Annotated[str, Field(description="Multiclass archetype ID")],
    level: Annotated[int, Field(description="Character level", ge=1, le=20)],
) -> str:
    """Show the spellcasting a multiclass archetype grants at a character level."""
    result = await archetype_service.calculate_multiclass_spellcasting(archetype_id, level)
    if result.is_failure:
        return _format_failure(result)
    spellcasting = result.unwrap()
    lines = [
        f"**Tradition:** {spellcasting.tradition} ({spellcasting.spellcasting_ability})",
        f"**Casting:** {'prepared' if spellcasting.prepared_casting else 'spontaneous'}",
        f"**Max Spell Level:** {spellcasting.max_spell_level}",
        "**Slots:** " + (", ".join(
            f"{sl}: {n}" for sl, n in sorted(spellcasting.spell_slots.items())
        ) or "none"),
    ]
    if spellcasting.spells_known:
        lines.append("**Spells Known:** " + ", ".join(
            f"{sl}: {n}" for sl, n in sorted(spellcasting.spells_known.items())
        ))
    return "\n".join(lines)


@mcp.tool
async def search_archetypes(
    term: Annotated[str, Field(description="Text to find in archetype names, descriptions or traits")],
) -> str:
    """Search the archetype catalogue."""
    result = await archetypes.search(term)
    if result.is_failure:
        return _format_failure(result)
    matches = result.unwrap()
    if not matches:
        return f"No archetypes match '{term}'"
    return "\n".join(
        f"- **{a.name}** (`{a.id}`, {a.type.value}, {a.source}): {a.description}"
        for a in matches
    )


logger.debug("✅ All tools registered")

def main() -> None:
    """Main entry point for the Pathfinder rules MCP server."""
    mcp.run()

if __name__ == "__main__":
    main()
