"""
Archetype repository - read access to archetype and archetype-feat content.

``ArchetypeRepository`` is the protocol the archetype service depends on.
``InMemoryArchetypeRepository`` holds a catalogue in dictionaries and can be
loaded from YAML; the bundled catalogue lives in ``data/archetypes.yaml``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..exceptions import RepositoryError
from ..models import Archetype, ArchetypeType, DerivedCharacter, Feat
from ..results import Result
from ..rules.prerequisites import PrerequisiteEvaluator

logger = logging.getLogger(__name__)

DEFAULT_CATALOGUE = Path(__file__).resolve().parent.parent / "data" / "archetypes.yaml"


class ArchetypeRepository(ABC):
    """Archetype catalogue lookups.

    Every operation returns a ``Result``; unknown ids are not-found failures,
    never exceptions.
    """

    @abstractmethod
    async def get_archetype(self, archetype_id: str) -> Result[Archetype]:
        ...

    @abstractmethod
    async def list_archetypes(self) -> Result[list[Archetype]]:
        ...

    @abstractmethod
    async def list_by_type(self, archetype_type: ArchetypeType | str) -> Result[list[Archetype]]:
        ...

    @abstractmethod
    async def get_dedication_feat(self, archetype_id: str) -> Result[Feat]:
        ...

    @abstractmethod
    async def get_archetype_feats(self, archetype_id: str) -> Result[list[Feat]]:
        """Catalogued feats of an archetype, in declaration order."""

    @abstractmethod
    async def get_available_feats(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[list[Feat]]:
        """Archetype feats the character qualifies for and does not hold yet."""

    @abstractmethod
    async def validate_prerequisites(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        """Whether the character meets every dedication prerequisite."""

    @abstractmethod
    async def search(self, term: str) -> Result[list[Archetype]]:
        """Case-insensitive match on name, description and traits."""

    @abstractmethod
    async def list_by_source(self, source: str) -> Result[list[Archetype]]:
        ...

    @abstractmethod
    async def list_by_trait(self, trait: str) -> Result[list[Archetype]]:
        ...

    @abstractmethod
    async def get_multiclass_archetype_for_class(self, class_id: str) -> Result[Archetype]:
        ...


class InMemoryArchetypeRepository(ArchetypeRepository):
    """Archetype catalogue held in memory.

    Args:
        archetypes: Archetype definitions, keyed by id on load.
        feats: Feat definitions referenced by the archetypes.
        evaluator: Prerequisite evaluator for dedication and feat checks.
    """

    def __init__(
        self,
        archetypes: list[Archetype] | None = None,
        feats: list[Feat] | None = None,
        evaluator: PrerequisiteEvaluator | None = None,
    ) -> None:
        self._archetypes: dict[str, Archetype] = {a.id: a for a in archetypes or []}
        self._feats: dict[str, Feat] = {f.id: f for f in feats or []}
        self.evaluator = evaluator or PrerequisiteEvaluator()

    @classmethod
    def from_yaml(
        cls, path: Path | str, evaluator: PrerequisiteEvaluator | None = None
    ) -> "InMemoryArchetypeRepository":
        """Load a catalogue with top-level ``archetypes`` and ``feats`` lists.

        Raises:
            RepositoryError: If the file cannot be read or does not describe
                a valid catalogue.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise RepositoryError(
                f"Cannot read archetype catalogue {path}: {e}", details={"path": str(path)}
            ) from e

        if not isinstance(data, dict) or "archetypes" not in data:
            raise RepositoryError(
                f"Archetype catalogue {path} must contain an 'archetypes' key",
                details={"path": str(path)},
            )

        try:
            archetypes = [Archetype(**entry) for entry in data["archetypes"] or []]
            feats = [Feat(**entry) for entry in data.get("feats") or []]
        except (TypeError, ValidationError) as e:
            raise RepositoryError(
                f"Invalid archetype catalogue {path}: {e}", details={"path": str(path)}
            ) from e

        logger.info(f"Loaded {len(archetypes)} archetypes and {len(feats)} feats from {path}")
        return cls(archetypes, feats, evaluator)

    @property
    def archetypes(self) -> list[Archetype]:
        return list(self._archetypes.values())

    def add_archetype(self, archetype: Archetype) -> None:
        self._archetypes[archetype.id] = archetype

    def add_feat(self, feat: Feat) -> None:
        self._feats[feat.id] = feat

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_archetype(self, archetype_id: str) -> Result[Archetype]:
        archetype = self._archetypes.get(archetype_id)
        if archetype is None:
            return Result.not_found(f"Archetype '{archetype_id}' not found", archetype_id=archetype_id)
        return Result.success(archetype)

    async def list_archetypes(self) -> Result[list[Archetype]]:
        return Result.success(list(self._archetypes.values()))

    async def list_by_type(self, archetype_type: ArchetypeType | str) -> Result[list[Archetype]]:
        try:
            wanted = ArchetypeType(archetype_type.lower())
        except ValueError:
            return Result.invalid(f"Unknown archetype type: {archetype_type}")
        return Result.success([a for a in self._archetypes.values() if a.type == wanted])

    async def get_dedication_feat(self, archetype_id: str) -> Result[Feat]:
        archetype = self._archetypes.get(archetype_id)
        feat = self._feats.get(archetype.dedication_feat_id) if archetype else None
        if feat is None:
            return Result.not_found(
                f"Dedication feat for archetype '{archetype_id}' not found",
                archetype_id=archetype_id,
            )
        return Result.success(feat)

    async def get_archetype_feats(self, archetype_id: str) -> Result[list[Feat]]:
        archetype = self._archetypes.get(archetype_id)
        if archetype is None:
            return Result.not_found(f"Archetype '{archetype_id}' not found", archetype_id=archetype_id)
        ordered = [archetype.dedication_feat_id] + [
            feat_id for feat_id in archetype.feat_ids if feat_id != archetype.dedication_feat_id
        ]
        return Result.success([self._feats[fid] for fid in ordered if fid in self._feats])

    def get_feat(self, feat_id: str) -> Feat | None:
        return self._feats.get(feat_id)

    async def get_available_feats(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[list[Feat]]:
        feats_result = await self.get_archetype_feats(archetype_id)
        if feats_result.is_failure:
            return feats_result
        available = [
            feat for feat in feats_result.unwrap()
            if not character.has_feat(feat.id)
            and feat.level <= character.level
            and self.evaluator.evaluate_all(feat.prerequisites, character)
        ]
        return Result.success(available)

    async def validate_prerequisites(
        self, archetype_id: str, character: DerivedCharacter
    ) -> Result[bool]:
        archetype = self._archetypes.get(archetype_id)
        if archetype is None:
            return Result.not_found(f"Archetype '{archetype_id}' not found", archetype_id=archetype_id)
        return Result.success(self.evaluator.evaluate_all(archetype.prerequisites, character))

    async def search(self, term: str) -> Result[list[Archetype]]:
        needle = term.strip().lower()
        matches = [
            a for a in self._archetypes.values()
            if needle in a.name.lower()
            or needle in a.description.lower()
            or any(needle in trait.lower() for trait in a.traits)
        ]
        return Result.success(matches)

    async def list_by_source(self, source: str) -> Result[list[Archetype]]:
        wanted = source.strip().lower()
        return Result.success([a for a in self._archetypes.values() if a.source.lower() == wanted])

    async def list_by_trait(self, trait: str) -> Result[list[Archetype]]:
        wanted = trait.strip().lower()
        return Result.success([
            a for a in self._archetypes.values() if wanted in (t.lower() for t in a.traits)
        ])

    async def get_multiclass_archetype_for_class(self, class_id: str) -> Result[Archetype]:
        wanted = class_id.strip().lower()
        for archetype in self._archetypes.values():
            if (
                archetype.type == ArchetypeType.MULTICLASS
                and (archetype.associated_class_id or "").lower() == wanted
            ):
                return Result.success(archetype)
        return Result.not_found(
            f"No multiclass archetype for class '{class_id}'", class_id=class_id
        )


def load_default_catalogue(
    evaluator: PrerequisiteEvaluator | None = None,
) -> InMemoryArchetypeRepository:
    """Repository over the bundled archetype catalogue."""
    return InMemoryArchetypeRepository.from_yaml(DEFAULT_CATALOGUE, evaluator)


__all__ = [
    "ArchetypeRepository",
    "InMemoryArchetypeRepository",
    "load_default_catalogue",
    "DEFAULT_CATALOGUE",
]
