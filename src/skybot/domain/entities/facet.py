"""Rich text facets: annotated byte ranges of a text body."""

from dataclasses import dataclass
from typing import Any

MENTION_TYPE = "app.bsky.richtext.facet#mention"
LINK_TYPE = "app.bsky.richtext.facet#link"
TAG_TYPE = "app.bsky.richtext.facet#tag"


@dataclass(frozen=True)
class Mention:
    """A mention of another account."""

    did: str

    def to_record(self) -> dict[str, Any]:
        return {"$type": MENTION_TYPE, "did": self.did}


@dataclass(frozen=True)
class Link:
    """A hyperlink."""

    uri: str

    def to_record(self) -> dict[str, Any]:
        return {"$type": LINK_TYPE, "uri": self.uri}


@dataclass(frozen=True)
class Tag:
    """A hashtag, stored without the leading ``#``."""

    tag: str

    def to_record(self) -> dict[str, Any]:
        return {"$type": TAG_TYPE, "tag": self.tag}


FacetFeature = Mention | Link | Tag


def _feature_from_record(data: dict[str, Any]) -> FacetFeature | None:
    kind = data.get("$type")
    if kind == MENTION_TYPE:
        return Mention(did=data["did"])
    if kind == LINK_TYPE:
        return Link(uri=data["uri"])
    if kind == TAG_TYPE:
        return Tag(tag=data["tag"])
    return None


@dataclass(frozen=True)
class Facet:
    """A range of a text body with special meaning.

    Offsets are UTF-8 byte offsets into the text, end exclusive, as they
    appear on the wire.
    """

    byte_start: int
    byte_end: int
    features: tuple[FacetFeature, ...]

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "Facet":
        index = data.get("index", {})
        features = tuple(
            feature
            for feature in (_feature_from_record(f) for f in data.get("features", []))
            if feature is not None
        )
        return cls(
            byte_start=index.get("byteStart", 0),
            byte_end=index.get("byteEnd", 0),
            features=features,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "$type": "app.bsky.richtext.facet",
            "index": {"byteStart": self.byte_start, "byteEnd": self.byte_end},
            "features": [feature.to_record() for feature in self.features],
        }

    def slice(self, text: str) -> str:
        """The part of ``text`` this facet annotates."""
        return text.encode("utf-8")[self.byte_start : self.byte_end].decode("utf-8", "replace")


def coerce_facets(facets: Any) -> tuple[Facet, ...]:
    """Accept facets as ``Facet`` objects or wire dicts."""
    if not facets:
        return ()
    return tuple(f if isinstance(f, Facet) else Facet.from_record(f) for f in facets)
