"""
RuleModuleRegistry - holds every known rule module.

Modules are registered once at process start, before concurrent use, and
are read-only afterwards. The registry answers which modules a set of
enabled variant rules activates; ordering by priority is left to the
calculator.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ..exceptions import ModuleRegistrationError
from ..models import VariantRuleSet
from ..results import Result
from .modules import builtin_modules
from .modules.base import RuleModule

if TYPE_CHECKING:
    from ..archetypes.index import ArchetypeIndex

logger = logging.getLogger(__name__)


class RuleModuleRegistry:
    """Append-only collection of rule modules."""

    def __init__(self) -> None:
        self._modules: list[RuleModule] = []

    def register(self, module: RuleModule) -> None:
        """Register one module.

        Raises:
            ModuleRegistrationError: If a module with the same name exists.
        """
        if self.get_module(module.name) is not None:
            raise ModuleRegistrationError(
                f"A rule module named '{module.name}' is already registered",
                module_name=module.name,
            )
        self._modules.append(module)
        logger.info(f"Registered rule module: {module.name} (priority {module.priority})")

    def register_many(self, modules: Iterable[RuleModule]) -> None:
        for module in modules:
            self.register(module)

    @property
    def modules(self) -> tuple[RuleModule, ...]:
        return tuple(self._modules)

    def get_module(self, name: str) -> RuleModule | None:
        """Case-insensitive lookup by module name."""
        wanted = name.lower()
        for module in self._modules:
            if module.name.lower() == wanted:
                return module
        return None

    def get_active_modules(self, rules: VariantRuleSet) -> list[RuleModule]:
        """Modules whose activating rule is enabled, in registration order."""
        return [m for m in self._modules if rules.is_enabled(m.variant_rule)]

    def validate_module_chain(self, modules: Iterable[RuleModule] | None = None) -> Result[str]:
        """Check a module set for priority conflicts.

        Two modules sharing a priority have no defined relative order, which
        is a configuration error to fix before deployment.

        Args:
            modules: Modules to check; defaults to every registered module.

        Returns:
            Success with a confirmation message, or a validation failure
            listing every shared priority and the modules sharing it.
        """
        by_priority: dict[int, list[str]] = defaultdict(list)
        for module in (self._modules if modules is None else modules):
            by_priority[module.priority].append(module.name)

        conflicts = [
            f"Priority conflict at {priority}: {', '.join(names)}"
            for priority, names in sorted(by_priority.items())
            if len(names) > 1
        ]
        if conflicts:
            logger.error(f"Module chain validation failed: {'; '.join(conflicts)}")
            return Result.invalid(
                f"Module chain validation failed: {'; '.join(conflicts)}",
                priorities=[p for p, names in sorted(by_priority.items()) if len(names) > 1],
            )
        return Result.success("Module chain is valid")


def default_registry(archetype_index: ArchetypeIndex | None = None) -> RuleModuleRegistry:
    """Registry pre-loaded with the built-in modules."""
    registry = RuleModuleRegistry()
    registry.register_many(builtin_modules(archetype_index))
    return registry


__all__ = ["RuleModuleRegistry", "default_registry"]
