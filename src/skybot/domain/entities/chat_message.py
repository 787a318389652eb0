"""Chat message domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from skybot.domain.entities.facet import Facet, coerce_facets
from skybot.domain.entities.lazy import Memo
from skybot.domain.entities.profile import Profile, parse_datetime
from skybot.domain.identifiers import StrongRef

if TYPE_CHECKING:
    from skybot.domain.entities.conversation import Conversation
    from skybot.domain.services.bot import Bot

DELETED_MESSAGE_VIEW_TYPE = "chat.bsky.convo.defs#deletedMessageView"


@dataclass(frozen=True)
class ChatMessage:
    """A message in a chat conversation.

    The sender and conversation are held by identifier only and resolved
    through the bot on first use.
    """

    id: str
    text: str
    sender_did: str
    sent_at: datetime
    conversation_id: str | None = None
    facets: tuple[Facet, ...] = ()
    embed: StrongRef | None = None
    bot: "Bot | None" = field(default=None, compare=False, repr=False)
    _sender: Memo[Profile] = field(default_factory=Memo, init=False, compare=False, repr=False)
    _conversation: "Memo[Conversation]" = field(
        default_factory=Memo, init=False, compare=False, repr=False
    )

    def _require_bot(self) -> "Bot":
        if self.bot is None:
            raise RuntimeError("ChatMessage has no bot to resolve relations through")
        return self.bot

    async def get_sender(self) -> Profile:
        """Fetch the profile of the user who sent this message."""
        if self._sender.resolved:
            return self._sender.value  # type: ignore[return-value]
        bot = self._require_bot()

        async def load() -> Profile:
            if bot.profile is not None and bot.profile.did == self.sender_did:
                return bot.profile
            return await bot.get_profile(self.sender_did)

        return await self._sender.get_or_load(load)

    async def get_conversation(self) -> "Conversation | None":
        """Fetch the conversation this message belongs to.

        Returns None if the message was never attached to a conversation.
        """
        if self._conversation.resolved:
            return self._conversation.value
        if not self.conversation_id:
            return None
        bot = self._require_bot()
        conversation_id = self.conversation_id
        return await self._conversation.get_or_load(
            lambda: bot.get_conversation(conversation_id)
        )

    @classmethod
    def from_view(
        cls,
        view: dict[str, Any],
        bot: "Bot | None" = None,
        conversation_id: str | None = None,
    ) -> "ChatMessage":
        """Construct from a ``chat.bsky.convo.defs#messageView``."""
        text = view.get("text", "")
        embed = view.get("embed")
        record = embed.get("record") if isinstance(embed, dict) else None
        return cls(
            id=view["id"],
            text=text,
            sender_did=view["sender"]["did"],
            sent_at=parse_datetime(view.get("sentAt")) or datetime.now(timezone.utc),
            conversation_id=conversation_id,
            facets=coerce_facets(view.get("facets")),
            embed=StrongRef.from_record(record) if record and "cid" in record else None,
            bot=bot,
        )


@dataclass
class MessagePage:
    """One page of a conversation's history, newest first."""

    messages: list[ChatMessage]
    cursor: str | None = None


@dataclass
class ChatMessagePayload:
    """Data used to send a chat message."""

    conversation_id: str
    text: str
    facets: list[Facet] | None = None
    embed: StrongRef | None = None

    def to_message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"text": self.text}
        if self.facets:
            message["facets"] = [facet.to_record() for facet in self.facets]
        if self.embed:
            message["embed"] = {"$type": "app.bsky.embed.record", "record": self.embed.to_record()}
        return message
