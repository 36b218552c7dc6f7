"""Ignore Bulk Limit — carried bulk is tracked but never encumbers."""

from __future__ import annotations

from ...models import Character, DerivedCharacter, ValidationSeverity, VariantRule
from .base import RuleModule


class IgnoreBulkLimitModule(RuleModule):
    name = "Ignore Bulk Limit"
    priority = 50
    variant_rule = VariantRule.IGNORE_BULK_LIMIT

    def on_encumbrance(self, character: Character, derived: DerivedCharacter) -> None:
        # Finalization leaves is_encumbered False while this flag is set
        derived.encumbrance_ignored = True
        derived.is_encumbered = False

    def on_validation(self, character: Character, derived: DerivedCharacter) -> None:
        derived.add_issue(
            ValidationSeverity.INFO,
            "Ignore Bulk Limit",
            "Bulk limits and encumbrance penalties are ignored. "
            "Item bulk is still tracked for reference.",
            data={
                "current_bulk": derived.current_bulk,
                "theoretical_limit": derived.bulk_limit,
                "would_be_encumbered": derived.current_bulk > derived.bulk_limit,
            },
        )
