"""
Bot Framework Handler for the stand-up bot.

Handles incoming Bot Framework activities and proactive messaging.
Uses CloudAdapter; managed identity credentials are used when
MICROSOFT_APP_TYPE is UserAssignedMSI, otherwise app id + password.
"""
import logging
from typing import List, Optional

from botbuilder.core import Storage, TurnContext
from botbuilder.integration.aiohttp import CloudAdapter, ConfigurationBotFrameworkAuthentication
from botbuilder.schema import Activity, ActivityTypes, ConversationReference
from botframework.connector.auth import ManagedIdentityServiceClientCredentialsFactory

from .bot import HELP_MESSAGE, StandupBot
from .config import Config
from .repository import StandupRepository

logger = logging.getLogger(__name__)

MSI_APP_TYPE = "UserAssignedMSI"


class _BotConfig:
    """Config object for ConfigurationBotFrameworkAuthentication."""
    def __init__(self, app_id: str, app_password: str, app_type: str, tenant_id: str):
        self.APP_ID = app_id
        self.APP_PASSWORD = app_password
        self.APP_TYPE = app_type
        self.APP_TENANTID = tenant_id


class BotHandler:
    """Handles Bot Framework messages and proactive messaging."""

    def __init__(self, settings: Config, storage: Optional[Storage] = None):
        """
        Initialize CloudAdapter and the stand-up bot.

        Args:
            settings: Bot Framework credentials and stand-up options
            storage: Bot Framework Storage for roster and session state
                     (defaults to MemoryStorage)
        """
        self.app_id = settings.MICROSOFT_APP_ID

        config = _BotConfig(
            settings.MICROSOFT_APP_ID or "",
            settings.MICROSOFT_APP_PASSWORD or "",
            settings.MICROSOFT_APP_TYPE,
            settings.MICROSOFT_APP_TENANT_ID or "",
        )
        if settings.MICROSOFT_APP_TYPE == MSI_APP_TYPE:
            # MSI credentials factory skips auth when app_id is empty
            logger.info(f"Using MSI credentials for app_id: {self.app_id}")
            auth = ConfigurationBotFrameworkAuthentication(
                config,
                credentials_factory=ManagedIdentityServiceClientCredentialsFactory(app_id=self.app_id or ""),
            )
        else:
            auth = ConfigurationBotFrameworkAuthentication(config)
        self.adapter = CloudAdapter(auth)

        self.bot = StandupBot(
            StandupRepository(storage),
            self.send_proactive,
            summary_max_length=settings.SUMMARY_MAX_LENGTH,
            restrict_skip=settings.STANDUP_RESTRICT_SKIP,
        )

        # Error handler
        async def on_error(context: TurnContext, error: Exception):
            logger.exception(f"Bot error: {error}")
            try:
                await context.send_activity("😬 Something went wrong on my side. Please try again in a moment.")
            except Exception as e:
                logger.warning(f"Could not send error reply: {e}")

        self.adapter.on_turn_error = on_error

    async def process_activity(self, body: dict, auth_header: str):
        """
        Process an incoming Bot Framework activity.

        The CloudAdapter handles JWT validation.
        """
        activity = Activity().deserialize(body)

        response = await self.adapter.process_activity(
            auth_header, activity, self._on_turn
        )
        return response

    async def _on_turn(self, turn_context: TurnContext):
        """Handle a turn (message or event) from Teams."""
        activity = turn_context.activity
        thread_id = activity.conversation.id if activity.conversation else "unknown"

        # Handle conversation updates (bot added/removed)
        if activity.type == ActivityTypes.conversation_update:
            for member in activity.members_added or []:
                if activity.recipient and member.id == activity.recipient.id:
                    logger.info(f"Bot added to conversation: {thread_id[:30]}...")
                    await turn_context.send_activity(f"👋 Hi! I run stand-ups here.\n\n{HELP_MESSAGE}")
            return

        if activity.type == ActivityTypes.message and activity.text:
            sender = activity.from_property.name if activity.from_property else "Unknown"
            logger.info(f"Teams message from {sender} in {thread_id[:30]}...")
            await self.bot.on_message(turn_context)

    async def send_proactive(self, reference: ConversationReference, activities: List[Activity]) -> bool:
        """Send messages into a previously captured conversation."""
        thread_id = reference.conversation.id if reference.conversation else "unknown"

        async def callback(turn_context: TurnContext):
            for activity in activities:
                await turn_context.send_activity(activity)

        try:
            await self.adapter.continue_conversation(
                reference, callback, bot_app_id=self.app_id
            )
            logger.info(f"Sent {len(activities)} proactive message(s) to {thread_id[:30]}...")
            return True
        except Exception as e:
            logger.error(f"Failed to send proactive message: {e}")
            return False
