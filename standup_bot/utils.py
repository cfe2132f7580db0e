"""
Utility functions for inbound message text.

Sanitization is the trust boundary: every message is cleaned here before the
command router looks at it.
"""
import re

# Security: Teams caps messages at roughly 28 KB; longer input never comes from a real client
MAX_TEAMS_MESSAGE_LENGTH = 28000

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')
_MENTION_TAG = re.compile(r'<at>[^<]*</at>', re.IGNORECASE)


def sanitize_teams_message(text: str) -> str:
    """
    Sanitize a message received from Teams before routing it.

    Security:
    - Removes control characters (except tab, newline, carriage return)
    - Truncates to MAX_TEAMS_MESSAGE_LENGTH to prevent abuse
    """
    # Remove control chars except \t (0x09), \n (0x0a), \r (0x0d)
    text = _CONTROL_CHARS.sub('', text or '')

    # Length limit
    if len(text) > MAX_TEAMS_MESSAGE_LENGTH:
        text = text[:MAX_TEAMS_MESSAGE_LENGTH] + "... [truncated]"

    return text.strip()


def strip_mention_tags(text: str) -> str:
    """Remove every <at>...</at> mention tag and collapse the leftover spacing."""
    text = _MENTION_TAG.sub('', text or '')
    return re.sub(r'[ \t]{2,}', ' ', text).strip()


def first_token(text: str) -> str:
    """Lower-cased first word of a message, or an empty string."""
    parts = text.split(None, 1)
    return parts[0].lower() if parts else ""


def command_argument(text: str) -> str:
    """Everything after the first word of a message."""
    parts = text.split(None, 1)
    return parts[1].strip() if len(parts) > 1 else ""
