"""Rate-limited client core for building bots on the AT Protocol."""

from skybot.core.config import Settings, get_settings
from skybot.core.exceptions import (
    AppException,
    AuthenticationError,
    CreatePostError,
    ErrorCode,
    FetchProfileError,
    InvalidArgumentError,
    NoSessionError,
    NotFoundError,
    TransportError,
)
from skybot.core.logging import setup_logging
from skybot.core.rate_limit import TokenBucket
from skybot.domain.entities.chat_message import ChatMessage, ChatMessagePayload, MessagePage
from skybot.domain.entities.conversation import Conversation
from skybot.domain.entities.post import Post, PostPayload
from skybot.domain.entities.profile import Profile
from skybot.domain.entities.session import AtpSession, CredentialLogin, SessionState
from skybot.domain.identifiers import AtUri, StrongRef
from skybot.domain.services.bot import Bot

__all__ = [
    "AppException",
    "AtUri",
    "AtpSession",
    "AuthenticationError",
    "Bot",
    "ChatMessage",
    "ChatMessagePayload",
    "Conversation",
    "CreatePostError",
    "CredentialLogin",
    "ErrorCode",
    "FetchProfileError",
    "InvalidArgumentError",
    "MessagePage",
    "NoSessionError",
    "NotFoundError",
    "Post",
    "PostPayload",
    "Profile",
    "SessionState",
    "Settings",
    "StrongRef",
    "TokenBucket",
    "TransportError",
    "get_settings",
    "setup_logging",
]
