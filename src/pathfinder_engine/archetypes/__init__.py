"""
Archetypes: catalogue repository, membership index and legality service.
"""

from .index import ArchetypeIndex
from .repository import (
    DEFAULT_CATALOGUE,
    ArchetypeRepository,
    InMemoryArchetypeRepository,
    load_default_catalogue,
)
from .service import ArchetypeService

__all__ = [
    "ArchetypeIndex",
    "ArchetypeRepository",
    "ArchetypeService",
    "InMemoryArchetypeRepository",
    "DEFAULT_CATALOGUE",
    "load_default_catalogue",
]
