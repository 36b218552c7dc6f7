"""
Feat → archetype membership index.

Built once from an archetype repository. Membership is exact: a feat belongs
to an archetype only if the archetype lists it (or names it as dedication).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models import Archetype
from ..results import Result
from .repository import ArchetypeRepository

logger = logging.getLogger(__name__)


class ArchetypeIndex:
    """Two-way lookup between archetypes and the feats they own."""

    def __init__(self, archetypes: Iterable[Archetype] = ()) -> None:
        self._feats_by_archetype: dict[str, frozenset[str]] = {}
        self._archetype_by_feat: dict[str, str] = {}
        self._archetypes: dict[str, Archetype] = {}
        for archetype in archetypes:
            self.add(archetype)

    @classmethod
    async def build(cls, repository: ArchetypeRepository) -> Result["ArchetypeIndex"]:
        """Index every archetype the repository lists.

        Returns:
            The index, or the repository's failure when it cannot list
            its archetypes.
        """
        result = await repository.list_archetypes()
        if result.is_failure:
            logger.warning(f"Cannot build archetype index: {result.error}")
            return Result.from_failure(result)
        index = cls(result.unwrap())
        logger.debug(
            f"Built archetype index: {len(index._feats_by_archetype)} archetypes, "
            f"{len(index._archetype_by_feat)} feats"
        )
        return Result.success(index)

    def add(self, archetype: Archetype) -> None:
        owned = frozenset(archetype.all_feat_ids)
        self._feats_by_archetype[archetype.id] = owned
        self._archetypes[archetype.id] = archetype
        for feat_id in owned:
            existing = self._archetype_by_feat.get(feat_id)
            if existing is not None and existing != archetype.id:
                logger.warning(
                    f"Feat '{feat_id}' listed by both '{existing}' and '{archetype.id}', "
                    f"keeping '{existing}'"
                )
                continue
            self._archetype_by_feat[feat_id] = archetype.id

    def archetype_ids(self) -> list[str]:
        return list(self._feats_by_archetype)

    def get(self, archetype_id: str) -> Archetype | None:
        return self._archetypes.get(archetype_id)

    def feats_of(self, archetype_id: str) -> frozenset[str]:
        return self._feats_by_archetype.get(archetype_id, frozenset())

    def archetype_of(self, feat_id: str) -> str | None:
        return self._archetype_by_feat.get(feat_id)

    def is_member(self, archetype_id: str, feat_id: str) -> bool:
        return feat_id in self.feats_of(archetype_id)

    def held_feats(self, archetype_id: str, feat_ids: Iterable[str]) -> list[str]:
        """Feat ids from ``feat_ids`` that belong to the archetype, in order."""
        owned = self.feats_of(archetype_id)
        return [feat_id for feat_id in feat_ids if feat_id in owned]

    def archetypes_held(self, feat_ids: Iterable[str]) -> list[str]:
        """Distinct archetype ids owning any of ``feat_ids``, first-seen order."""
        seen: list[str] = []
        for feat_id in feat_ids:
            archetype_id = self._archetype_by_feat.get(feat_id)
            if archetype_id is not None and archetype_id not in seen:
                seen.append(archetype_id)
        return seen


__all__ = ["ArchetypeIndex"]
