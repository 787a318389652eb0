"""Post embed entities.

Embeds are carried alongside posts without the core interpreting them; these
types only give the common shapes a friendlier surface than raw dicts.
"""

from dataclasses import dataclass, field
from typing import Any

from skybot.domain.identifiers import StrongRef

IMAGES_TYPE = "app.bsky.embed.images"
EXTERNAL_TYPE = "app.bsky.embed.external"
RECORD_TYPE = "app.bsky.embed.record"


class PostEmbed:
    """Base class for post embeds."""

    def is_images(self) -> bool:
        return False

    def is_external(self) -> bool:
        return False

    def is_record(self) -> bool:
        return False


def _blob_cid(blob: Any) -> str | None:
    if isinstance(blob, dict):
        ref = blob.get("ref")
        if isinstance(ref, dict):
            return ref.get("$link")
        return blob.get("cid")
    return None


@dataclass(frozen=True)
class EmbedImage:
    """An image embedded in a post."""

    cid: str
    mime_type: str
    size: int
    alt: str = ""
    aspect_ratio: tuple[int, int] | None = None
    thumb: str | None = field(default=None, repr=False)
    fullsize: str | None = field(default=None, repr=False)

    @property
    def thumbnail_url(self) -> str | None:
        """URL of the image's thumbnail on the CDN, when known."""
        return self.thumb

    @property
    def url(self) -> str | None:
        """URL of the full-size image on the CDN, when known."""
        return self.fullsize

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "EmbedImage":
        image = data.get("image", {})
        ratio = data.get("aspectRatio")
        return cls(
            cid=_blob_cid(image) or "",
            mime_type=image.get("mimeType", ""),
            size=image.get("size", 0),
            alt=data.get("alt", ""),
            aspect_ratio=(ratio["width"], ratio["height"]) if ratio else None,
            thumb=data.get("thumb"),
            fullsize=data.get("fullsize"),
        )


@dataclass(frozen=True)
class ImagesEmbed(PostEmbed):
    """A set of images."""

    images: tuple[EmbedImage, ...]

    def is_images(self) -> bool:
        return True


@dataclass(frozen=True)
class ExternalEmbed(PostEmbed):
    """A post embed that links to external content."""

    uri: str
    title: str
    description: str
    thumb: str | None = None

    def is_external(self) -> bool:
        return True

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "ExternalEmbed":
        external = data.get("external", data)
        thumb = external.get("thumb")
        return cls(
            uri=external["uri"],
            title=external.get("title", ""),
            description=external.get("description", ""),
            thumb=thumb if isinstance(thumb, str) else _blob_cid(thumb),
        )


@dataclass(frozen=True)
class RecordEmbed(PostEmbed):
    """A quoted record."""

    record: StrongRef

    def is_record(self) -> bool:
        return True


@dataclass(frozen=True)
class UnknownEmbed(PostEmbed):
    """An embed type this package has no dedicated class for.

    ``data`` still takes part in equality but not in hashing.
    """

    data: dict[str, Any] = field(hash=False)


def parse_embed(data: dict[str, Any] | None) -> PostEmbed | None:
    """Build the embed entity for a record's ``embed`` field."""
    if not data:
        return None

    kind = data.get("$type", "")
    # Views use "<type>#view"
    base = kind.split("#", 1)[0]

    if base == IMAGES_TYPE:
        return ImagesEmbed(images=tuple(EmbedImage.from_record(i) for i in data.get("images", [])))
    if base == EXTERNAL_TYPE:
        return ExternalEmbed.from_record(data)
    if base == RECORD_TYPE and "record" in data:
        record = data["record"]
        if "uri" in record and "cid" in record:
            return RecordEmbed(record=StrongRef.from_record(record))
    return UnknownEmbed(data=data)
