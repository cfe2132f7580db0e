"""Tests for message sanitization helpers."""
from standup_bot.utils import (
    MAX_TEAMS_MESSAGE_LENGTH,
    command_argument,
    first_token,
    sanitize_teams_message,
    strip_mention_tags,
)


class TestSanitize:
    def test_removes_control_characters(self):
        assert sanitize_teams_message("he\x00llo\x1f\tworld\n") == "hello\tworld"

    def test_truncates_long_messages(self):
        text = sanitize_teams_message("a" * (MAX_TEAMS_MESSAGE_LENGTH + 10))
        assert text.endswith("... [truncated]")
        assert len(text) == MAX_TEAMS_MESSAGE_LENGTH + len("... [truncated]")

    def test_long_answer_is_not_truncated(self):
        answer = "x" * 5000
        assert sanitize_teams_message(answer) == answer

    def test_none_is_empty(self):
        assert sanitize_teams_message(None) == ""


class TestMentionTags:
    def test_strips_bot_mention(self):
        assert strip_mention_tags("<at>StandupBot</at> join") == "join"

    def test_strips_mentions_mid_text(self):
        assert strip_mention_tags("<AT>Bot</AT> remove <at>Bob Smith</at> please") == "remove please"

    def test_keeps_newlines(self):
        assert strip_mention_tags("line one\nline two") == "line one\nline two"


class TestTokens:
    def test_first_token(self):
        assert first_token("  Report here ") == "report"
        assert first_token("") == ""

    def test_command_argument(self):
        assert command_argument("remove  Bob Smith ") == "Bob Smith"
        assert command_argument("remove") == ""
