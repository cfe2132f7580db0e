"""
Renders a finished stand-up into numbered, length-bounded summary pages.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List

from .state import STANDUP_QUESTIONS, StandupSession, TeamData

MAX_SUMMARY_LENGTH = 4000
UNKNOWN_TEAMMATE = "Unknown teammate"
SKIPPED = "_(Skipped)_"
NO_RESPONSE = "_(No response)_"


@dataclass
class SummaryPage:
    title: str
    content: str

    def to_markdown(self) -> str:
        return f"**{self.title}**\n\n{self.content}"


class SummaryFormatter:
    """Builds summary pages; a participant's block is never split across pages."""

    def __init__(self, max_length: int = MAX_SUMMARY_LENGTH):
        self.max_length = max_length

    def build_blocks(self, team: TeamData, session: StandupSession) -> List[str]:
        """One block per participant, in session order."""
        blocks = []
        for participant_id in session.order:
            member = team.roster.get(participant_id)
            name = member.name if member else UNKNOWN_TEAMMATE
            header = f"## Status for {name} ##"

            response = session.responses.get(participant_id)
            if response is None or response.skipped:
                blocks.append(f"{header}\n{SKIPPED}")
                continue

            answers = []
            for index, question in enumerate(STANDUP_QUESTIONS):
                answer = response.answers[index] if index < len(response.answers) else ""
                answers.append(f"**{question.prompt}**\n{self._normalize_answer(answer)}")
            blocks.append(header + "\n" + "\n\n".join(answers))
        return blocks

    def build_pages(self, team: TeamData, session: StandupSession) -> List[SummaryPage]:
        title = f"Standup for {self._report_date(session)}"

        contents: List[str] = []
        current = ""
        for block in self.build_blocks(team, session):
            candidate = f"{current}\n\n{block}" if current else block
            if current and len(candidate) > self.max_length:
                contents.append(current)
                current = block
            else:
                current = candidate
        if current.strip():
            contents.append(current)

        total = len(contents)
        return [
            SummaryPage(title=f"{title} ({index} of {total})", content=content)
            for index, content in enumerate(contents, start=1)
        ]

    @staticmethod
    def _normalize_answer(answer: str) -> str:
        if not answer or not answer.strip():
            return NO_RESPONSE
        # Teams markdown collapses single newlines
        return re.sub(r'\r?\n', '\n\n', answer.strip())

    @staticmethod
    def _report_date(session: StandupSession) -> str:
        try:
            return datetime.fromisoformat(session.started_at).date().isoformat()
        except ValueError:
            return session.started_at[:10]
