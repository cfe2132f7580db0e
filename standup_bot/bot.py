"""
Stand-up command router.

Turns sanitized Teams messages into roster and session operations and
replies in the conversation. Summaries go out through the proactive sender
supplied by the bot handler, since the summary channel may differ from the
conversation the stand-up runs in.
"""
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from botbuilder.core import MessageFactory, TurnContext
from botbuilder.core.teams import TeamsInfo
from botbuilder.schema import Activity, ConversationReference, TextFormatTypes
from botframework.connector import Channels

from .identity import (
    UNKNOWN_NAME,
    get_base_channel_id,
    get_channel_name,
    get_conversation_id,
    get_conversation_reference,
    get_scope_id,
    get_user_display_name,
    get_user_key,
)
from .mentions import channel_mention, mention_message, user_mentions
from .repository import StandupRepository
from .roster_store import RosterStore
from .standup_manager import (
    AFFIRMATIVE_WORDS,
    NEGATIVE_WORDS,
    NoActiveSessionError,
    StandupError,
    StandupManager,
    is_affirmative,
    is_skip_keyword,
)
from .state import RosterMember, StandupSession, SummaryChannel, TeamData
from .summary_formatter import MAX_SUMMARY_LENGTH, SummaryFormatter
from .utils import command_argument, first_token, sanitize_teams_message, strip_mention_tags

logger = logging.getLogger(__name__)

ProactiveSender = Callable[[ConversationReference, List[Activity]], Awaitable[bool]]

PUBLISH_WORDS = AFFIRMATIVE_WORDS | {"publish"}
DISCARD_WORDS = NEGATIVE_WORDS | {"discard", "cancel", "skip"}


def confirmation_choice(text: str) -> Optional[bool]:
    """True to publish, False to discard, None when the whole message is neither."""
    word = text.strip().lower()
    if word in PUBLISH_WORDS:
        return True
    if word in DISCARD_WORDS:
        return False
    return None


HELP_MESSAGE = "\n".join([
    "Here's how I can help with stand-ups:",
    "- `join` / `leave` - manage your roster membership.",
    "- `remove @teammate` - take someone else off the roster.",
    "- `members` - list everyone currently participating.",
    "- `report here` or `report in #channel` - choose where summaries go.",
    "- `where do you report?` - confirm the summary destination.",
    "- `start` - kick off a stand-up.",
    "- `skip` - move past the teammate who is up.",
    "- `end` - stop the stand-up and choose whether to publish the summary.",
    "- `publish` / `discard` - the facilitator's call once the stand-up is over.",
    "- During your turn just answer the three questions as I ask them.",
])


@dataclass
class Turn:
    """One inbound message with the state it operates on."""
    context: TurnContext
    team: TeamData
    conversation_id: str
    text: str
    token: str
    user_id: str
    user_name: str

    @property
    def activity(self) -> Activity:
        return self.context.activity

    async def reply(self, message) -> None:
        if isinstance(message, str):
            message = MessageFactory.text(message)
        await self.context.send_activity(message)


class StandupBot:
    """Routes stand-up commands for every conversation the bot is in."""

    def __init__(
        self,
        repository: StandupRepository,
        send_proactive: ProactiveSender,
        summary_max_length: int = MAX_SUMMARY_LENGTH,
        restrict_skip: bool = False,
    ):
        self.repository = repository
        self.send_proactive = send_proactive
        self.restrict_skip = restrict_skip
        self.roster = RosterStore()
        self.manager = StandupManager()
        self.formatter = SummaryFormatter(summary_max_length)
        self._commands = {
            "help": self._handle_help,
            "join": self._handle_join,
            "leave": self._handle_leave,
            "quit": self._handle_leave,
            "remove": self._handle_remove,
            "members": self._handle_members,
            "team": self._handle_members,
            "participants": self._handle_members,
            "report": self._handle_report,
            "start": self._handle_start,
            "skip": self._handle_skip,
            "end": self._handle_end,
            "publish": self._handle_confirmation_command,
            "discard": self._handle_confirmation_command,
        }

    async def on_message(self, turn_context: TurnContext) -> None:
        """Handle one message: load state, route, save state."""
        activity = turn_context.activity
        text = strip_mention_tags(sanitize_teams_message(activity.text or ""))
        if not text:
            return

        scope_id = get_scope_id(activity)
        team = await self.repository.load(scope_id)
        turn = Turn(
            context=turn_context,
            team=team,
            conversation_id=get_conversation_id(activity),
            text=text,
            token=first_token(text),
            user_id=get_user_key(activity),
            user_name=get_user_display_name(activity),
        )

        try:
            await self._route(turn)
        finally:
            # Saved even when a reply fails, so a delivered summary stays cleared
            await self.repository.save(scope_id, team)

    async def _route(self, turn: Turn) -> None:
        session = self.manager.get_session(turn.team, turn.conversation_id)

        if session and self.manager.current_participant(turn.team, turn.conversation_id) == turn.user_id:
            if await self._handle_participant_turn(turn, session):
                return

        if session and session.awaiting_publish_confirmation:
            publish = confirmation_choice(turn.text)
            if publish is not None:
                await self._handle_confirmation(turn, session, publish)
                return

        handler = self._commands.get(turn.token)
        if handler:
            await handler(turn)
            return

        if self._is_where_question(turn):
            await self._handle_where(turn)
            return

        if session and not session.completed and is_skip_keyword(turn.text):
            await self._handle_skip(turn)

    @staticmethod
    def _is_where_question(turn: Turn) -> bool:
        return turn.token.startswith("where") and "report" in turn.text.lower()

    # ------------------------------------------------------------------
    # Session turn-taking
    # ------------------------------------------------------------------

    async def _handle_participant_turn(self, turn: Turn, session: StandupSession) -> bool:
        """Readiness or answer from whoever is up. False lets the message fall through to commands."""
        if session.awaiting_ready:
            if is_affirmative(turn.text):
                result = self.manager.mark_ready(turn.team, turn.conversation_id, turn.user_id)
                if result.accepted:
                    await turn.reply(mention_message(self._member(turn.team, turn.user_id), result.question))
                    return True
            if is_skip_keyword(turn.text):
                await self._skip_current(turn)
                return True
            if turn.token in self._commands or self._is_where_question(turn):
                return False
            await turn.reply("Just let me know when you are ready with a quick `yes`, or say `skip` to move on.")
            return True

        if turn.text.strip().lower() == "skip":
            await self._skip_current(turn)
            return True

        result = self.manager.record_answer(turn.team, turn.conversation_id, turn.user_id, turn.text)
        if not result.accepted:
            return False
        if result.next_question:
            await turn.reply(mention_message(self._member(turn.team, turn.user_id), result.next_question))
            return True

        if result.completed_participant:
            await turn.reply("✅ Thank you! I captured your update.")
        if result.session_complete:
            await self._complete_run(turn)
        else:
            await self._prompt_current(turn)
        return True

    async def _handle_skip(self, turn: Turn) -> None:
        session = self.manager.get_session(turn.team, turn.conversation_id)
        if not session or session.completed:
            await turn.reply("There is no active stand-up right now.")
            return

        current_id = self.manager.current_participant(turn.team, turn.conversation_id)
        if self.restrict_skip and turn.user_id not in (current_id, session.facilitator_id):
            current = self._member(turn.team, current_id)
            await turn.reply(f"Only {current.name} or the facilitator can skip this turn.")
            return

        await self._skip_current(turn)

    async def _skip_current(self, turn: Turn) -> None:
        result = self.manager.skip_current(turn.team, turn.conversation_id)
        if result.skipped_participant_id:
            skipped = self._member(turn.team, result.skipped_participant_id)
            await turn.reply(f"⏭️ Skipping {skipped.name}.")

        if result.session_complete:
            await self._complete_run(turn)
        else:
            await self._prompt_current(turn)

    async def _prompt_current(self, turn: Turn) -> None:
        participant_id = self.manager.current_participant(turn.team, turn.conversation_id)
        if not participant_id:
            return
        member = self._member(turn.team, participant_id)
        await turn.reply(mention_message(member, "are you ready? Reply `yes` when ready or `skip` to pass."))

    async def _complete_run(self, turn: Turn) -> None:
        session = self.manager.get_session(turn.team, turn.conversation_id)
        facilitator = session.facilitator_name if session and session.facilitator_name else "Facilitator"
        await turn.reply(
            f"🎉 That wraps everyone! {facilitator}, reply `publish` (or `yes`) to post the summary, "
            f"or `discard` (or `no`) to drop it."
        )

    # ------------------------------------------------------------------
    # Publish / discard
    # ------------------------------------------------------------------

    async def _handle_confirmation_command(self, turn: Turn) -> None:
        session = self.manager.get_session(turn.team, turn.conversation_id)
        if not session:
            await turn.reply("There is no stand-up summary waiting for confirmation.")
            return
        if not session.awaiting_publish_confirmation:
            await turn.reply("The stand-up is still running. Use `end` first if you want to stop it now.")
            return
        await self._handle_confirmation(turn, session, turn.token == "publish")

    async def _handle_confirmation(self, turn: Turn, session: StandupSession, publish: bool) -> None:
        if turn.user_id != session.facilitator_id:
            facilitator = session.facilitator_name or "the facilitator"
            await turn.reply(f"Thanks! Only {facilitator} can publish or discard this summary.")
            return

        if publish:
            await self._publish(turn, session)
            return

        self.manager.clear(turn.team, turn.conversation_id)
        await turn.reply("👍 No worries, summary discarded. The slate is clear.")

    async def _publish(self, turn: Turn, session: StandupSession) -> None:
        reference = self._summary_reference(turn.team, session)
        if reference is None:
            logger.warning(f"No summary destination for stand-up {session.id}")
            self.manager.clear(turn.team, turn.conversation_id)
            await turn.reply(
                "I couldn't find a channel to post the summary. "
                "Run `report here` in the target channel and start again."
            )
            return

        pages = self.formatter.build_pages(turn.team, session)
        activities = []
        for page in pages:
            activity = MessageFactory.text(page.to_markdown())
            activity.text_format = TextFormatTypes.markdown
            activities.append(activity)

        delivered = await self.send_proactive(reference, activities)
        self.manager.clear(turn.team, turn.conversation_id)

        if delivered:
            logger.info(f"Published stand-up {session.id} in {len(pages)} page(s)")
            await turn.reply("📬 Summary posted! Nice work team.")
        else:
            await turn.reply("⚠️ I couldn't publish the summary. Please try again or check my permissions.")

    @staticmethod
    def _summary_reference(team: TeamData, session: StandupSession) -> Optional[ConversationReference]:
        if team.summary_channel is not None:
            data = team.summary_channel.conversation_reference
        else:
            data = session.conversation_reference
        if not data:
            return None
        reference = ConversationReference().deserialize(data)
        if not reference.conversation or not reference.conversation.id:
            return None
        return reference

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _handle_help(self, turn: Turn) -> None:
        await turn.reply(HELP_MESSAGE)

    async def _handle_join(self, turn: Turn) -> None:
        member = await self._sender_profile(turn)
        added, member = self.roster.add_or_update(turn.team, member)
        if added:
            await turn.reply(f"🎉 Welcome aboard, {member.name}! I'll include you in the next stand-up.")
        else:
            await turn.reply(f"✅ You're already on the roster, {member.name}.")

    async def _handle_leave(self, turn: Turn) -> None:
        removed = self.roster.remove(turn.team, turn.user_id)
        if removed:
            await turn.reply(f"👋 Got it, {turn.user_name}. I've taken you off the roster.")
        else:
            await turn.reply("🤔 I didn't have you on the roster, but I'm here if you change your mind.")

    async def _handle_remove(self, turn: Turn) -> None:
        mentions = user_mentions(turn.activity)
        if mentions:
            mention = mentions[0]
            target_name = mention.name or "that teammate"
            target = (
                self.roster.get_member(turn.team, mention.aad_object_id or mention.id)
                or self.roster.get_member(turn.team, mention.id)
            )
        else:
            target_name = command_argument(turn.text)
            if not target_name:
                await turn.reply(
                    "I could not figure out who to remove. Mention the teammate or spell their display name."
                )
                return
            target = self.roster.find_by_name(turn.team, target_name)

        if target is None:
            await turn.reply(f"I couldn't find {target_name} on the roster.")
            return

        self.roster.remove(turn.team, target.id)
        await turn.reply(f"🧹 Removed {target.name} from the roster.")

    async def _handle_members(self, turn: Turn) -> None:
        members = self.roster.list_members(turn.team)
        if not members:
            await turn.reply("The roster is empty. Ask your teammates to send `join` to participate.")
            return
        names = ", ".join(member.name for member in members)
        await turn.reply(f"Current roster ({len(members)}): {names}")

    async def _handle_report(self, turn: Turn) -> None:
        current_channel = get_base_channel_id(turn.conversation_id)
        mentioned = channel_mention(turn.activity)

        if mentioned and get_base_channel_id(mentioned.id) != current_channel:
            name = mentioned.name or mentioned.text or "that channel"
            turn.team.summary_channel = SummaryChannel(id=mentioned.id, name=name)
            await turn.reply(
                f"I'll aim to publish summaries in {name}. Please run `report here` from that channel "
                f"so I can capture its conversation reference."
            )
            return

        name = get_channel_name(turn.activity)
        turn.team.summary_channel = self._current_channel(turn)
        hashtag = re.search(r'#([\w-]+)', turn.text)
        if hashtag and not mentioned:
            await turn.reply(
                f"I couldn't resolve #{hashtag.group(1)} as a channel mention, so summaries will be posted "
                f"right here in {name}."
            )
            return
        await turn.reply(f"Summaries will be posted right here in {name}.")

    async def _handle_where(self, turn: Turn) -> None:
        channel = turn.team.summary_channel
        if channel is None:
            await turn.reply(
                "I don't have a summary channel yet, so I'll post where the stand-up runs. "
                "Use `report here` to pick one."
            )
        elif not channel.conversation_reference:
            await turn.reply(
                f"I plan to report in {channel.name}. Run `report here` from there so I can store its reference."
            )
        elif get_base_channel_id(channel.id) == get_base_channel_id(turn.conversation_id):
            await turn.reply("I'll publish summaries in this channel.")
        else:
            await turn.reply(f"I post summaries in {channel.name}.")

    async def _handle_start(self, turn: Turn) -> None:
        existing = self.manager.get_session(turn.team, turn.conversation_id)
        try:
            session = self.manager.begin(
                turn.team,
                turn.conversation_id,
                turn.user_id,
                facilitator_name=turn.user_name,
                conversation_reference=get_conversation_reference(turn.activity),
            )
        except StandupError as e:
            await turn.reply(str(e))
            return

        if existing and existing.awaiting_publish_confirmation:
            await turn.reply("The previous unpublished summary was dropped.")

        if turn.team.summary_channel is None:
            turn.team.summary_channel = self._current_channel(turn)
            await turn.reply(
                f"No summary channel configured yet, so I'll use {turn.team.summary_channel.name}."
            )

        names = ", ".join(self._member(turn.team, participant_id).name for participant_id in session.order)
        await turn.reply(
            f"🚀 Stand-up started! I'll check in with {len(session.order)} teammates in alphabetical order: {names}."
        )
        await self._prompt_current(turn)

    async def _handle_end(self, turn: Turn) -> None:
        try:
            session = self.manager.end(turn.team, turn.conversation_id)
        except NoActiveSessionError as e:
            await turn.reply(str(e))
            return
        facilitator = session.facilitator_name or "Facilitator"
        await turn.reply(
            f"Stand-up paused. {facilitator}, reply `publish` (or `yes`) to share the summary, "
            f"or `discard` (or `no`) to drop it."
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _member(self, team: TeamData, member_id: Optional[str]) -> RosterMember:
        member = self.roster.get_member(team, member_id) if member_id else None
        return member or RosterMember(id=member_id or "", name=UNKNOWN_NAME)

    @staticmethod
    def _current_channel(turn: Turn) -> SummaryChannel:
        return SummaryChannel(
            id=turn.conversation_id,
            name=get_channel_name(turn.activity),
            conversation_reference=get_conversation_reference(turn.activity),
        )

    async def _sender_profile(self, turn: Turn) -> RosterMember:
        """Roster entry for the sender, refreshed from Teams when possible."""
        sender = turn.activity.from_property
        if turn.activity.channel_id == Channels.ms_teams and sender and sender.id:
            try:
                member = await TeamsInfo.get_member(turn.context, sender.id)
                return RosterMember(
                    id=member.aad_object_id or member.id,
                    name=member.name or turn.user_name,
                    aad_object_id=member.aad_object_id,
                )
            except Exception as e:
                logger.warning(f"Could not look up Teams member {sender.id[:30]}...: {e}")
        return RosterMember(
            id=turn.user_id,
            name=turn.user_name,
            aad_object_id=sender.aad_object_id if sender else None,
        )
