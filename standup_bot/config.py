"""
Stand-up bot configuration from environment variables.

Environment variables:
- MICROSOFT_APP_ID: Bot Framework App ID
- MICROSOFT_APP_PASSWORD: client secret (empty for managed identity)
- MICROSOFT_APP_TYPE: MultiTenant, SingleTenant or UserAssignedMSI
- MICROSOFT_APP_TENANT_ID: Azure AD tenant ID
- PORT: Server port (default 3978)
- LOG_LEVEL: logging level name (default INFO)
- SUMMARY_MAX_LENGTH: maximum characters per summary page (default 4000)
- STANDUP_RESTRICT_SKIP: only the current participant or the facilitator may skip
"""
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Stand-up bot configuration from environment variables."""

    # Bot Framework
    MICROSOFT_APP_ID: str = os.environ.get("MICROSOFT_APP_ID", "")
    MICROSOFT_APP_PASSWORD: str = os.environ.get("MICROSOFT_APP_PASSWORD", "")
    MICROSOFT_APP_TYPE: str = os.environ.get("MICROSOFT_APP_TYPE", "MultiTenant")
    MICROSOFT_APP_TENANT_ID: str = os.environ.get("MICROSOFT_APP_TENANT_ID", "")

    # Server
    PORT: int = int(os.environ.get("PORT", "3978"))
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Stand-up behaviour
    SUMMARY_MAX_LENGTH: int = int(os.environ.get("SUMMARY_MAX_LENGTH", "4000"))
    STANDUP_RESTRICT_SKIP: bool = _env_flag("STANDUP_RESTRICT_SKIP")


config = Config()
