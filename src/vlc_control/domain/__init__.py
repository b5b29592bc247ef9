"""Domain models for vlc-control.

Constants, the allow-list, the retry policy and dispatch outcomes. All
models use Pydantic v2 and are frozen.
"""

from vlc_control.domain.models import (
    ALLOWED_COMMANDS,
    DATAGRAM_BUFFER_SIZE,
    DEFAULT_ALLOW_LIST,
    DEFAULT_RETRY_POLICY,
    MAX_COMMAND_SIZE,
    PRIVILEGED_PREFIX,
    VLC_PROMPT,
    AllowList,
    CommandRoute,
    RetryPolicy,
    format_address,
    parse_address,
)

__all__ = [
    "ALLOWED_COMMANDS",
    "DATAGRAM_BUFFER_SIZE",
    "DEFAULT_ALLOW_LIST",
    "DEFAULT_RETRY_POLICY",
    "MAX_COMMAND_SIZE",
    "PRIVILEGED_PREFIX",
    "VLC_PROMPT",
    "AllowList",
    "CommandRoute",
    "RetryPolicy",
    "format_address",
    "parse_address",
]
