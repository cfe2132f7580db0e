"""
Stand-up session state machine.

A session walks the roster snapshot in order. Each participant first confirms
they are ready, then answers the fixed questions one at a time. Skipping or
answering the last question moves on to the next participant; once everyone
has had a turn (or the session is ended early) the summary waits for the
facilitator to publish or discard it.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .state import STANDUP_QUESTIONS, ParticipantResponse, StandupSession, TeamData

logger = logging.getLogger(__name__)

AFFIRMATIVE_WORDS = frozenset({"yes", "y", "ok", "okay", "sure", "ready", "yep"})
NEGATIVE_WORDS = frozenset({"no", "n", "nope"})
SKIP_WORDS = NEGATIVE_WORDS | {"skip", "cancel"}


class StandupError(Exception):
    """Base class for stand-up operations that cannot proceed."""


class EmptyRosterError(StandupError):
    def __init__(self):
        super().__init__("Roster is empty. Add teammates before starting a stand-up.")


class SessionInProgressError(StandupError):
    def __init__(self):
        super().__init__("A stand-up is already in progress. Use `end` if you need to stop it.")


class NoActiveSessionError(StandupError):
    def __init__(self):
        super().__init__("There is no active stand-up right now.")


class PendingSummaryError(StandupError):
    def __init__(self, facilitator_name: str = ""):
        facilitator = facilitator_name or "the facilitator"
        super().__init__(
            f"A stand-up summary is waiting for {facilitator} to `publish` or `discard` it "
            f"before a new stand-up can start."
        )


@dataclass
class ReadinessResult:
    accepted: bool
    question: Optional[str] = None


@dataclass
class AnswerResult:
    accepted: bool = True
    next_question: Optional[str] = None
    completed_participant: bool = False
    session_complete: bool = False


@dataclass
class SkipResult:
    skipped_participant_id: Optional[str] = None
    session_complete: bool = False


def is_affirmative(text: str) -> bool:
    return text.strip().lower() in AFFIRMATIVE_WORDS


def is_negative(text: str) -> bool:
    return text.strip().lower() in NEGATIVE_WORDS


def is_skip_keyword(text: str) -> bool:
    return text.strip().lower() in SKIP_WORDS


class StandupManager:
    """Session transitions for one conversation inside a team's state blob."""

    def get_session(self, team: TeamData, conversation_id: str) -> Optional[StandupSession]:
        return team.sessions.get(conversation_id)

    def is_active(self, team: TeamData, conversation_id: str) -> bool:
        session = self.get_session(team, conversation_id)
        return bool(session and not session.completed)

    def current_participant(self, team: TeamData, conversation_id: str) -> Optional[str]:
        session = self.get_session(team, conversation_id)
        if not session or session.completed or session.current_index >= len(session.order):
            return None
        return session.order[session.current_index]

    def begin(
        self,
        team: TeamData,
        conversation_id: str,
        facilitator_id: str,
        facilitator_name: str = "",
        conversation_reference: Optional[Dict[str, Any]] = None,
    ) -> StandupSession:
        """
        Start a stand-up with a snapshot of the current roster.

        Raises:
            EmptyRosterError: Nobody is on the roster.
            SessionInProgressError: A stand-up is still collecting updates here.
            PendingSummaryError: Someone other than the previous facilitator tried
                to replace a summary that is waiting for confirmation.
        """
        order = self._build_order(team)
        if not order:
            raise EmptyRosterError()
        if self.is_active(team, conversation_id):
            raise SessionInProgressError()

        previous = self.get_session(team, conversation_id)
        if previous:
            if previous.awaiting_publish_confirmation and previous.facilitator_id != facilitator_id:
                raise PendingSummaryError(previous.facilitator_name)
            logger.warning(f"Replacing unconfirmed summary in {conversation_id[:30]}...")

        session = StandupSession(
            id=str(uuid.uuid4()),
            facilitator_id=facilitator_id,
            facilitator_name=facilitator_name,
            conversation_id=conversation_id,
            order=order,
            started_at=datetime.now(timezone.utc).isoformat(),
            conversation_reference=conversation_reference,
        )
        team.sessions[conversation_id] = session
        logger.info(f"Stand-up {session.id} started in {conversation_id[:30]}... with {len(order)} participants")
        return session

    def mark_ready(self, team: TeamData, conversation_id: str, user_id: str) -> ReadinessResult:
        session = self.get_session(team, conversation_id)
        if not session or session.completed or not session.awaiting_ready:
            return ReadinessResult(accepted=False)
        if self.current_participant(team, conversation_id) != user_id:
            return ReadinessResult(accepted=False)

        session.awaiting_ready = False
        session.current_question = 0
        self._ensure_response(session, user_id)
        return ReadinessResult(accepted=True, question=STANDUP_QUESTIONS[0].prompt)

    def record_answer(self, team: TeamData, conversation_id: str, user_id: str, text: str) -> AnswerResult:
        session = self.get_session(team, conversation_id)
        if not session or session.completed:
            return AnswerResult(accepted=False)
        if (
            self.current_participant(team, conversation_id) != user_id
            or session.awaiting_ready
            or session.current_question < 0
        ):
            return AnswerResult(accepted=False)

        response = self._ensure_response(session, user_id)
        response.answers[session.current_question] = text.strip()

        if session.current_question < len(STANDUP_QUESTIONS) - 1:
            session.current_question += 1
            return AnswerResult(next_question=STANDUP_QUESTIONS[session.current_question].prompt)

        return AnswerResult(
            completed_participant=True,
            session_complete=self._advance(session),
        )

    def skip_current(self, team: TeamData, conversation_id: str) -> SkipResult:
        """Skip whoever is currently up, whether or not they started answering."""
        session = self.get_session(team, conversation_id)
        if not session or session.completed:
            return SkipResult(session_complete=bool(session))

        current = session.order[session.current_index]
        self._ensure_response(session, current).skipped = True
        logger.info(f"Skipped {current[:30]} in stand-up {session.id}")
        return SkipResult(skipped_participant_id=current, session_complete=self._advance(session))

    def end(self, team: TeamData, conversation_id: str) -> StandupSession:
        """
        Stop collecting updates early and wait for the facilitator's decision.

        Raises:
            NoActiveSessionError: No stand-up is collecting updates here.
        """
        session = self.get_session(team, conversation_id)
        if not session or session.completed:
            raise NoActiveSessionError()
        session.completed = True
        session.awaiting_publish_confirmation = True
        logger.info(f"Stand-up {session.id} ended at participant {session.current_index + 1}/{len(session.order)}")
        return session

    def clear(self, team: TeamData, conversation_id: str) -> None:
        removed = team.sessions.pop(conversation_id, None)
        if removed:
            logger.info(f"Stand-up {removed.id} cleared")

    def _advance(self, session: StandupSession) -> bool:
        """Move to the next participant. Returns True when nobody is left."""
        session.current_question = -1
        session.awaiting_ready = True
        session.current_index += 1

        if session.current_index >= len(session.order):
            session.completed = True
            session.awaiting_publish_confirmation = True
            logger.info(f"Stand-up {session.id} complete")
            return True
        return False

    @staticmethod
    def _ensure_response(session: StandupSession, participant_id: str) -> ParticipantResponse:
        if participant_id not in session.responses:
            session.responses[participant_id] = ParticipantResponse()
        return session.responses[participant_id]

    @staticmethod
    def _build_order(team: TeamData) -> List[str]:
        members = sorted(team.roster.values(), key=lambda member: member.name.strip().casefold())
        return [member.id for member in members]
