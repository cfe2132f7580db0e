"""
Conversation state for the stand-up bot.

Everything here is plain data: the repository serializes TeamData to a dict
so that any Bot Framework Storage implementation can hold it.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Question:
    """One of the fixed stand-up prompts."""
    id: str
    prompt: str


STANDUP_QUESTIONS = (
    Question(id="past-work", prompt="What have you done since the last stand-up?"),
    Question(id="current-work", prompt="What are you working on now?"),
    Question(id="blockers", prompt="Anything in your way?"),
)


@dataclass
class RosterMember:
    """A teammate eligible for stand-up turns."""
    id: str  # aad_object_id when Teams provides one, else the channel account id
    name: str
    aad_object_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RosterMember':
        return cls(
            id=data["id"],
            name=data.get("name") or "Unknown teammate",
            aad_object_id=data.get("aad_object_id"),
        )


@dataclass
class ParticipantResponse:
    """Answers captured for one participant, one slot per question."""
    answers: List[str] = field(default_factory=lambda: [""] * len(STANDUP_QUESTIONS))
    skipped: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParticipantResponse':
        answers = list(data.get("answers") or [])
        answers += [""] * (len(STANDUP_QUESTIONS) - len(answers))
        return cls(answers=answers, skipped=bool(data.get("skipped", False)))


@dataclass
class StandupSession:
    """One run of the stand-up ritual in a single conversation."""
    id: str
    facilitator_id: str
    facilitator_name: str
    conversation_id: str
    order: List[str]
    started_at: str  # ISO-8601, UTC
    conversation_reference: Optional[Dict[str, Any]] = None
    current_index: int = 0
    current_question: int = -1  # -1 while waiting for the participant to be ready
    awaiting_ready: bool = True
    responses: Dict[str, ParticipantResponse] = field(default_factory=dict)
    awaiting_publish_confirmation: bool = False
    completed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StandupSession':
        return cls(
            id=data["id"],
            facilitator_id=data["facilitator_id"],
            facilitator_name=data.get("facilitator_name", ""),
            conversation_id=data["conversation_id"],
            order=list(data.get("order") or []),
            started_at=data["started_at"],
            conversation_reference=data.get("conversation_reference"),
            current_index=data.get("current_index", 0),
            current_question=data.get("current_question", -1),
            awaiting_ready=data.get("awaiting_ready", True),
            responses={
                user_id: ParticipantResponse.from_dict(response)
                for user_id, response in (data.get("responses") or {}).items()
            },
            awaiting_publish_confirmation=data.get("awaiting_publish_confirmation", False),
            completed=data.get("completed", False),
        )


@dataclass
class SummaryChannel:
    """Where completed summaries are posted."""
    id: str
    name: str
    conversation_reference: Optional[Dict[str, Any]] = None  # None until `report here` runs there

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SummaryChannel':
        return cls(
            id=data["id"],
            name=data.get("name") or "that channel",
            conversation_reference=data.get("conversation_reference"),
        )


@dataclass
class TeamData:
    """State blob stored per team (or per conversation outside of a team)."""
    roster: Dict[str, RosterMember] = field(default_factory=dict)
    roster_order: List[str] = field(default_factory=list)
    summary_channel: Optional[SummaryChannel] = None
    sessions: Dict[str, StandupSession] = field(default_factory=dict)  # conversation_id → session

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TeamData':
        if not data:
            return cls()
        summary_channel = data.get("summary_channel")
        return cls(
            roster={
                member_id: RosterMember.from_dict(member)
                for member_id, member in (data.get("roster") or {}).items()
            },
            roster_order=list(data.get("roster_order") or []),
            summary_channel=SummaryChannel.from_dict(summary_channel) if summary_channel else None,
            sessions={
                conversation_id: StandupSession.from_dict(session)
                for conversation_id, session in (data.get("sessions") or {}).items()
            },
        )
