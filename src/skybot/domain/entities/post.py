"""Post domain entities."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from skybot.domain.entities.embed import PostEmbed, parse_embed
from skybot.domain.entities.facet import Facet, coerce_facets
from skybot.domain.entities.lazy import Memo
from skybot.domain.entities.profile import Profile, parse_datetime
from skybot.domain.identifiers import AtUri, StrongRef

if TYPE_CHECKING:
    from skybot.domain.services.bot import Bot

POST_COLLECTION = "app.bsky.feed.post"


@dataclass(frozen=True)
class ReplyRef:
    """Where a reply sits in its thread."""

    root: StrongRef
    parent: StrongRef

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "ReplyRef":
        return cls(
            root=StrongRef.from_record(data["root"]),
            parent=StrongRef.from_record(data["parent"]),
        )

    def to_record(self) -> dict[str, Any]:
        return {"root": self.root.to_record(), "parent": self.parent.to_record()}


@dataclass
class PostPayload:
    """Data used to create a post."""

    text: str
    facets: list[Facet] | None = None
    langs: list[str] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    embed: dict[str, Any] | None = None
    reply: ReplyRef | None = None

    @classmethod
    def from_data(cls, data: "PostPayload | Mapping[str, Any]") -> "PostPayload":
        if isinstance(data, PostPayload):
            return cls(
                text=data.text,
                facets=list(data.facets) if data.facets is not None else None,
                langs=list(data.langs) if data.langs is not None else None,
                created_at=data.created_at,
                embed=data.embed,
                reply=data.reply,
            )
        reply = data.get("reply")
        return cls(
            text=data["text"],
            facets=list(coerce_facets(data.get("facets"))) or None,
            langs=list(data["langs"]) if data.get("langs") is not None else None,
            created_at=data.get("created_at") or datetime.now(timezone.utc),
            embed=data.get("embed"),
            reply=ReplyRef.from_record(reply) if isinstance(reply, Mapping) else reply,
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "$type": POST_COLLECTION,
            "text": self.text,
            "facets": [facet.to_record() for facet in self.facets or []],
            "langs": list(self.langs or []),
            "createdAt": self.created_at.isoformat(),
        }
        if self.embed:
            record["embed"] = self.embed
        if self.reply:
            record["reply"] = self.reply.to_record()
        return record


@dataclass(frozen=True)
class Post:
    """A post, identified by its URI and content hash (CID).

    ``author`` is the memoized author profile. Posts returned by the bot
    have it filled in; posts built from a bare record resolve it on the first
    ``get_author()``.
    """

    uri: str
    cid: str
    text: str
    created_at: datetime
    author_did: str
    langs: tuple[str, ...] = ()
    facets: tuple[Facet, ...] = ()
    embed: PostEmbed | None = None
    reply: ReplyRef | None = None
    bot: "Bot | None" = field(default=None, compare=False, repr=False)
    _author: Memo[Profile] = field(default_factory=Memo, init=False, compare=False, repr=False)

    @property
    def author(self) -> Profile | None:
        return self._author.value

    @property
    def ref(self) -> StrongRef:
        return StrongRef(uri=self.uri, cid=self.cid)

    async def get_author(self) -> Profile:
        """Fetch the profile of the post's author."""
        if self._author.resolved:
            return self._author.value  # type: ignore[return-value]
        if self.bot is None:
            raise RuntimeError("Post has no bot to resolve its author through")

        bot = self.bot

        async def load() -> Profile:
            if bot.profile is not None and bot.profile.did == self.author_did:
                return bot.profile
            return await bot.get_profile(self.author_did)

        return await self._author.get_or_load(load)

    @classmethod
    def from_record(
        cls,
        uri: str,
        cid: str,
        record: dict[str, Any],
        *,
        author: Profile | None = None,
        bot: "Bot | None" = None,
    ) -> "Post":
        """Construct from an ``app.bsky.feed.post`` record.

        Without ``author`` the author DID is taken from the URI's repository
        and resolved lazily.
        """
        reply = record.get("reply")
        post = cls(
            uri=uri,
            cid=cid,
            text=record.get("text", ""),
            created_at=parse_datetime(record.get("createdAt")) or datetime.now(timezone.utc),
            author_did=author.did if author else AtUri.parse(uri).host,
            langs=tuple(record.get("langs") or ()),
            facets=coerce_facets(record.get("facets")),
            embed=parse_embed(record.get("embed")),
            reply=ReplyRef.from_record(reply) if reply else None,
            bot=bot,
        )
        if author is not None:
            post._author.set(author)
        return post
