"""
Who sent an activity, and where it was sent.
"""
from typing import Any, Dict, Optional

from botbuilder.core import TurnContext
from botbuilder.core.teams import teams_get_team_info
from botbuilder.schema import Activity
from botbuilder.schema.teams import TeamsChannelData

UNKNOWN_USER = "unknown-user"
UNKNOWN_NAME = "Unknown teammate"


def get_user_key(activity: Activity) -> str:
    """Stable identity for the sender: AAD object id when Teams provides one."""
    sender = activity.from_property
    if not sender:
        return UNKNOWN_USER
    return sender.aad_object_id or sender.id or UNKNOWN_USER


def get_user_display_name(activity: Activity) -> str:
    sender = activity.from_property
    return (sender.name if sender else None) or UNKNOWN_NAME


def get_conversation_id(activity: Activity) -> str:
    return activity.conversation.id if activity.conversation and activity.conversation.id else "unknown"


def get_base_channel_id(conversation_id: str) -> str:
    """Strip the ;messageid=... suffix Teams adds for channel threads."""
    return conversation_id.split(";", 1)[0]


def get_scope_id(activity: Activity) -> str:
    """Storage scope: the team when the message comes from a Teams channel."""
    team = teams_get_team_info(activity)
    if team and team.id:
        return team.id
    return get_conversation_id(activity)


def get_channel_name(activity: Activity) -> str:
    channel_name: Optional[str] = None
    if activity.channel_data:
        channel_data = TeamsChannelData().deserialize(activity.channel_data)
        if channel_data.channel:
            channel_name = channel_data.channel.name
    if not channel_name and activity.conversation:
        channel_name = activity.conversation.name
    return channel_name or "this channel"


def get_conversation_reference(activity: Activity) -> Dict[str, Any]:
    """Serialized ConversationReference, suitable for storage."""
    return TurnContext.get_conversation_reference(activity).serialize()
