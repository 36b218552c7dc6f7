"""
Rule module capability.

A rule module is a named, prioritized unit activated by one variant rule.
The calculator drives every active module through the fixed ``Stage``
sequence by calling ``apply(stage, character, derived)``. Subclasses
implement only the stages they care about as ``on_<stage>`` methods; new
stages can be added to ``Stage`` without touching existing modules.
"""

from __future__ import annotations

from abc import ABC
from enum import Enum

from ...models import Character, DerivedCharacter, VariantRule


class Stage(Enum):
    """Derivation stages, in execution order."""
    SCORES = "scores"
    PROFICIENCY = "proficiency"
    FEATS = "feats"
    SLOTS = "slots"
    ENCUMBRANCE = "encumbrance"
    VALIDATION = "validation"


STAGE_SEQUENCE: tuple[Stage, ...] = tuple(Stage)


class RuleModule(ABC):
    """Base class for rule modules.

    Class attributes:
        name: Unique module name.
        priority: Execution order, ascending.
        variant_rule: The variant rule that activates the module.
    """

    name: str = ""
    priority: int = 0
    variant_rule: VariantRule

    def apply(self, stage: Stage, character: Character, derived: DerivedCharacter) -> None:
        """Contribute to one stage by dispatching to ``on_<stage>``, if defined."""
        handler = getattr(self, f"on_{stage.value}", None)
        if handler is not None:
            handler(character, derived)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
