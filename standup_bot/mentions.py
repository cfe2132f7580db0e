"""
Mention extraction for inbound activities and mention entities for replies.

Entities reach us in different shapes: plain dicts, deserialized Entity
objects (fields live in additional_properties) or Mention models built in
code. extract_mentions() flattens all of them into MentionRef.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from botbuilder.core import MessageFactory
from botbuilder.schema import Activity, ChannelAccount, Mention

from .state import RosterMember

USER = "user"
CHANNEL = "channel"


@dataclass
class MentionRef:
    kind: str  # USER or CHANNEL
    id: str
    name: Optional[str] = None
    text: Optional[str] = None
    aad_object_id: Optional[str] = None


def _as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    fields = dict(getattr(value, "additional_properties", None) or {})
    for attr in ("type", "text", "mentioned", "id", "name", "role", "aad_object_id"):
        attr_value = getattr(value, attr, None)
        if attr_value is not None:
            fields[attr] = attr_value
    return fields


def _is_channel(mentioned: Dict[str, Any]) -> bool:
    return any(
        str(mentioned.get(key, "")).lower() == CHANNEL
        for key in ("role", "kind", "mentionType")
    )


def extract_mentions(activity: Activity) -> List[MentionRef]:
    """Every mention entity in the activity with a usable id, in order."""
    refs = []
    for entity in activity.entities or []:
        fields = _as_dict(entity)
        if str(fields.get("type", "")).lower() != "mention":
            continue
        mentioned = _as_dict(fields.get("mentioned"))
        mentioned_id = mentioned.get("id")
        if not mentioned_id:
            continue
        refs.append(MentionRef(
            kind=CHANNEL if _is_channel(mentioned) else USER,
            id=mentioned_id,
            name=mentioned.get("name"),
            text=fields.get("text"),
            aad_object_id=mentioned.get("aad_object_id") or mentioned.get("aadObjectId"),
        ))
    return refs


def user_mentions(activity: Activity) -> List[MentionRef]:
    """User mentions other than the bot itself."""
    bot_id = activity.recipient.id if activity.recipient else None
    return [ref for ref in extract_mentions(activity) if ref.kind == USER and ref.id != bot_id]


def channel_mention(activity: Activity) -> Optional[MentionRef]:
    return next((ref for ref in extract_mentions(activity) if ref.kind == CHANNEL), None)


def mention_message(member: RosterMember, message: str) -> Activity:
    """A message that @-mentions member in front of the given text."""
    mention = Mention(
        mentioned=ChannelAccount(id=member.aad_object_id or member.id, name=member.name),
        text=f"<at>{member.name}</at>",
        type="mention",
    )
    reply = MessageFactory.text(f"{mention.text} {message}")
    reply.entities = [Mention().deserialize(mention.serialize())]
    return reply
