"""Conversation domain entity."""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from skybot.domain.entities.chat_message import ChatMessage, ChatMessagePayload, MessagePage
from skybot.domain.entities.lazy import Memo
from skybot.domain.entities.profile import Profile

if TYPE_CHECKING:
    from skybot.domain.services.bot import Bot


@dataclass(frozen=True)
class Conversation:
    """A chat conversation.

    Members are kept as DIDs and the message history is not carried at all;
    both are fetched on demand.
    """

    id: str
    rev: str
    member_dids: tuple[str, ...] = ()
    unread_count: int = 0
    muted: bool = False
    bot: "Bot | None" = field(default=None, compare=False, repr=False)
    _members: Memo[list[Profile]] = field(
        default_factory=Memo, init=False, compare=False, repr=False
    )

    def _require_bot(self) -> "Bot":
        if self.bot is None:
            raise RuntimeError("Conversation has no bot to resolve relations through")
        return self.bot

    async def get_members(self) -> list[Profile]:
        """Fetch the profiles of the conversation's members."""
        if self._members.resolved:
            return self._members.value  # type: ignore[return-value]
        bot = self._require_bot()

        async def resolve(did: str) -> Profile:
            if bot.profile is not None and bot.profile.did == did:
                return bot.profile
            return await bot.get_profile(did)

        async def load() -> list[Profile]:
            return list(await asyncio.gather(*(resolve(did) for did in self.member_dids)))

        return await self._members.get_or_load(load)

    async def get_messages(self, limit: int = 50, cursor: str | None = None) -> MessagePage:
        """Fetch a page of messages, newest first. Never cached."""
        return await self._require_bot().get_messages(self.id, limit=limit, cursor=cursor)

    async def send_message(self, text: str | ChatMessagePayload) -> ChatMessage:
        """Send a message to this conversation."""
        if isinstance(text, ChatMessagePayload):
            payload = text
        else:
            payload = ChatMessagePayload(conversation_id=self.id, text=text)
        return await self._require_bot().send_message(payload)

    @classmethod
    def from_view(cls, view: dict[str, Any], bot: "Bot | None" = None) -> "Conversation":
        """Construct from a ``chat.bsky.convo.defs#convoView``."""
        return cls(
            id=view["id"],
            rev=view.get("rev", ""),
            member_dids=tuple(member["did"] for member in view.get("members", [])),
            unread_count=view.get("unreadCount", 0),
            muted=view.get("muted", False),
            bot=bot,
        )
