"""Profile domain entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as sent by the service."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class Profile:
    """Snapshot of an account's profile.

    A new fetch produces a new snapshot; instances are never updated.
    """

    did: str
    handle: str
    display_name: str | None = None
    description: str | None = None
    avatar: str | None = None
    banner: str | None = None
    followers_count: int | None = None
    follows_count: int | None = None
    posts_count: int | None = None
    indexed_at: datetime | None = None

    @classmethod
    def from_view(cls, data: dict[str, Any]) -> "Profile":
        """Construct from an ``app.bsky.actor.defs#profileViewDetailed``."""
        return cls(
            did=data["did"],
            handle=data["handle"],
            display_name=data.get("displayName"),
            description=data.get("description"),
            avatar=data.get("avatar"),
            banner=data.get("banner"),
            followers_count=data.get("followersCount"),
            follows_count=data.get("followsCount"),
            posts_count=data.get("postsCount"),
            indexed_at=parse_datetime(data.get("indexedAt")),
        )
