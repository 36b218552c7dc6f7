"""
Campaign and character repositories used by the calculator.

Two backends are provided: ``InMemoryCampaignRepository`` for tests and
embedding, and ``JsonCampaignRepository`` which reads one JSON file per
campaign from ``<data_dir>/campaigns/<campaign_id>.json``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from .exceptions import RepositoryError
from .models import Campaign, Character, VariantRuleSet
from .results import Result

logger = logging.getLogger("pathfinder-engine")


class CampaignRepository(ABC):
    """Read access to characters and campaign variant rules.

    Missing entities are reported as not-found results. Backend faults
    (unreadable files, lost connections) raise ``RepositoryError``.
    """

    @abstractmethod
    async def get_character(self, character_id: str) -> Result[Character]:
        """Fetch a character aggregate by id."""

    @abstractmethod
    async def get_variant_rules(self, campaign_id: str) -> Result[VariantRuleSet]:
        """Fetch the enabled variant rules of a campaign."""


class InMemoryCampaignRepository(CampaignRepository):
    """Campaigns held in a dictionary."""

    def __init__(self, campaigns: list[Campaign] | None = None) -> None:
        self._campaigns: dict[str, Campaign] = {}
        for campaign in campaigns or []:
            self.add_campaign(campaign)

    def add_campaign(self, campaign: Campaign) -> None:
        self._campaigns[campaign.id] = campaign

    def add_character(self, campaign_id: str, character: Character) -> None:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            raise RepositoryError(f"Campaign '{campaign_id}' does not exist")
        campaign.characters[character.id] = character

    async def get_character(self, character_id: str) -> Result[Character]:
        for campaign in self._campaigns.values():
            character = campaign.characters.get(character_id)
            if character is not None:
                return Result.success(character)
        return Result.not_found("Character not found", character_id=character_id)

    async def get_variant_rules(self, campaign_id: str) -> Result[VariantRuleSet]:
        campaign = self._campaigns.get(campaign_id)
        if campaign is None:
            return Result.not_found("Campaign not found", campaign_id=campaign_id)
        return Result.success(campaign.rule_set())


class JsonCampaignRepository(CampaignRepository):
    """Campaigns stored as JSON files, one file per campaign."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.campaigns_dir = self.data_dir / "campaigns"
        logger.debug(f"Campaign repository reading from {self.campaigns_dir.resolve()}")

    def _campaign_file(self, campaign_id: str) -> Path:
        return self.campaigns_dir / f"{campaign_id}.json"

    def _load_campaign(self, path: Path) -> Campaign:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Campaign.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise RepositoryError(f"Cannot read campaign file {path.name}: {e}") from e

    def save_campaign(self, campaign: Campaign) -> Path:
        """Write a campaign file, creating the directory if needed."""
        self.campaigns_dir.mkdir(parents=True, exist_ok=True)
        path = self._campaign_file(campaign.id)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(campaign.model_dump(mode="json"), f, indent=2)
        logger.info(f"Saved campaign '{campaign.name}' to {path.name}")
        return path

    def list_campaign_ids(self) -> list[str]:
        if not self.campaigns_dir.exists():
            return []
        return sorted(p.stem for p in self.campaigns_dir.glob("*.json"))

    async def get_character(self, character_id: str) -> Result[Character]:
        for campaign_id in self.list_campaign_ids():
            campaign = self._load_campaign(self._campaign_file(campaign_id))
            character = campaign.characters.get(character_id)
            if character is not None:
                return Result.success(character)
        return Result.not_found("Character not found", character_id=character_id)

    async def get_variant_rules(self, campaign_id: str) -> Result[VariantRuleSet]:
        path = self._campaign_file(campaign_id)
        if not path.exists():
            return Result.not_found("Campaign not found", campaign_id=campaign_id)
        return Result.success(self._load_campaign(path).rule_set())


__all__ = [
    "CampaignRepository",
    "InMemoryCampaignRepository",
    "JsonCampaignRepository",
]
