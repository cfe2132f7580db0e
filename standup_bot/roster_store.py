"""
Roster management: who takes part in a team's stand-ups.
"""
import logging
from typing import List, Optional, Tuple

from .state import RosterMember, TeamData

logger = logging.getLogger(__name__)


def _name_key(member: RosterMember) -> str:
    return member.name.strip().casefold()


class RosterStore:
    """Ordered, id-unique set of roster members stored on TeamData."""

    def list_members(self, team: TeamData) -> List[RosterMember]:
        """Members in roster order, sorted case-insensitively by name."""
        members = [team.roster[member_id] for member_id in team.roster_order if member_id in team.roster]
        return sorted(members, key=_name_key)

    def get_member(self, team: TeamData, member_id: str) -> Optional[RosterMember]:
        return team.roster.get(member_id)

    def find_by_name(self, team: TeamData, name: str) -> Optional[RosterMember]:
        """Case-insensitive exact match on display name."""
        wanted = name.strip().casefold()
        if not wanted:
            return None
        for member in team.roster.values():
            if _name_key(member) == wanted:
                return member
        return None

    def add_or_update(self, team: TeamData, member: RosterMember) -> Tuple[bool, RosterMember]:
        """
        Insert a member, or refresh the stored fields of an existing one.

        Returns:
            (added, member) where added is False when the id was already present.
        """
        added = member.id not in team.roster
        team.roster[member.id] = member

        if member.id not in team.roster_order:
            team.roster_order.append(member.id)

        # dict.fromkeys drops duplicates while keeping first occurrence
        order = [member_id for member_id in dict.fromkeys(team.roster_order) if member_id in team.roster]
        team.roster_order = sorted(order, key=lambda member_id: _name_key(team.roster[member_id]))

        logger.info(f"Roster {'added' if added else 'updated'} {member.id[:30]}")
        return added, team.roster[member.id]

    def remove(self, team: TeamData, member_id: str) -> Optional[RosterMember]:
        removed = team.roster.pop(member_id, None)
        if removed is None:
            return None
        team.roster_order = [existing for existing in team.roster_order if existing != member_id]
        logger.info(f"Roster removed {member_id[:30]}")
        return removed
