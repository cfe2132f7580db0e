"""
Stand-up state persistence over a Bot Framework Storage.

One item per scope (team, or conversation outside of a team). Updates are
read-modify-write on that single key.
"""
import logging
from typing import Callable, Optional

from botbuilder.core import MemoryStorage, Storage

from .state import TeamData

logger = logging.getLogger(__name__)

KEY_PREFIX = "standup/"


class StandupRepository:
    """Loads and stores TeamData blobs keyed by scope id."""

    def __init__(self, storage: Optional[Storage] = None):
        self.storage = storage if storage is not None else MemoryStorage()

    @staticmethod
    def key_for(scope_id: str) -> str:
        return f"{KEY_PREFIX}{scope_id}"

    async def load(self, scope_id: str) -> TeamData:
        """Read a scope's state, or an empty blob if nothing is stored yet."""
        key = self.key_for(scope_id)
        items = await self.storage.read([key])
        item = items.get(key)
        if not item:
            return TeamData()
        data = item.get("data") if isinstance(item, dict) else getattr(item, "data", None)
        return TeamData.from_dict(data)

    async def save(self, scope_id: str, team: TeamData) -> None:
        await self.storage.write({
            self.key_for(scope_id): {"data": team.to_dict(), "e_tag": "*"},
        })
        logger.debug(f"Saved stand-up state for {scope_id[:30]}...")

    async def update(self, scope_id: str, updater: Callable[[TeamData], None]) -> TeamData:
        """Apply updater to the stored state and write the result back."""
        team = await self.load(scope_id)
        updater(team)
        await self.save(scope_id, team)
        return team

    async def delete(self, scope_id: str) -> None:
        await self.storage.delete([self.key_for(scope_id)])
        logger.info(f"Deleted stand-up state for {scope_id[:30]}...")
