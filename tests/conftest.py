"""
Pytest configuration and fixtures for pathfinder-engine tests.
"""

import sys
from pathlib import Path
import pytest

# Add src directory to Python path to allow importing pathfinder_engine
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from pathfinder_engine.archetypes import load_default_catalogue
from pathfinder_engine.cache import InMemoryCalculationCache
from pathfinder_engine.calculator import CharacterCalculator
from pathfinder_engine.models import DerivedCharacter, Feat
from pathfinder_engine.rules import PrerequisiteEvaluator, default_registry


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_derived(
    level: int = 1,
    scores: dict[str, int] | None = None,
    feats: list[str] | None = None,
    proficiencies: dict | None = None,
    name: str = "Valeros",
) -> DerivedCharacter:
    """Build a derived character directly, bypassing the calculator."""
    abilities = {
        "strength": 10, "dexterity": 10, "constitution": 10,
        "intelligence": 10, "wisdom": 10, "charisma": 10,
    }
    abilities.update(scores or {})
    derived = DerivedCharacter(
        id="char-1",
        name=name,
        level=level,
        ability_scores=abilities,
        proficiencies=proficiencies or {},
        selected_feats=[Feat(id=f, name=f.replace("-", " ").title()) for f in feats or []],
        available_feats=list(feats or []),
    )
    derived.recalculate_modifiers()
    return derived


@pytest.fixture
def evaluator() -> PrerequisiteEvaluator:
    return PrerequisiteEvaluator()


@pytest.fixture
def catalogue(evaluator):
    """Repository over the bundled archetype catalogue."""
    return load_default_catalogue(evaluator)


@pytest.fixture
def cache() -> InMemoryCalculationCache:
    return InMemoryCalculationCache()


@pytest.fixture
def calculator(cache) -> CharacterCalculator:
    return CharacterCalculator(default_registry(), cache)


@pytest.fixture
def make_character():
    """Factory for derived characters: make_character(level=4, scores={...}, feats=[...])."""
    return make_derived
