"""
Shared test helpers.

Turn contexts are faked: the bot only needs .activity and .send_activity(),
so tests can drive whole conversations without a Bot Framework channel.
"""
from typing import List, Optional

from botbuilder.core import MessageFactory
from botbuilder.schema import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
    ResourceResponse,
)

ALICE = ("alice-id", "Alice")
BOB = ("bob-id", "Bob")
CAROL = ("carol-id", "Carol")
BOT = ("bot-id", "StandupBot")
CONVERSATION_ID = "conv-1"


class FakeTurnContext:
    """Records everything the bot sends."""

    def __init__(self, activity: Activity):
        self.activity = activity
        self.sent: List[Activity] = []

    async def send_activity(self, activity_or_text, speak=None, input_hint=None):
        if isinstance(activity_or_text, str):
            activity_or_text = MessageFactory.text(activity_or_text)
        self.sent.append(activity_or_text)
        return ResourceResponse(id=str(len(self.sent)))

    @property
    def texts(self) -> List[str]:
        return [activity.text for activity in self.sent]


def make_activity(
    text: str,
    user=ALICE,
    conversation_id: str = CONVERSATION_ID,
    entities: Optional[list] = None,
    channel_data: Optional[dict] = None,
    channel_id: str = "test",
    activity_type: str = ActivityTypes.message,
) -> Activity:
    user_id, user_name = user
    return Activity(
        type=activity_type,
        id="activity-1",
        text=text,
        channel_id=channel_id,
        service_url="https://smba.example.test/",
        from_property=ChannelAccount(id=user_id, name=user_name),
        recipient=ChannelAccount(id=BOT[0], name=BOT[1]),
        conversation=ConversationAccount(id=conversation_id),
        entities=entities,
        channel_data=channel_data,
    )
