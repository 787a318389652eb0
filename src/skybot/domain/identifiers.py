"""AT Protocol identifiers: record URIs and strong references."""

import re
from dataclasses import dataclass
from typing import Any

from skybot.core.exceptions import ErrorCode, InvalidArgumentError

# at://<repository>/<collection>/<record-key>
_AT_URI = re.compile(r"^at://(?P<host>[^/?#\s]+)/(?P<collection>[^/?#\s]+)/(?P<rkey>[^/?#\s]+)$")


@dataclass(frozen=True)
class AtUri:
    """A parsed ``at://`` record URI."""

    host: str
    collection: str
    rkey: str

    @classmethod
    def parse(cls, uri: str) -> "AtUri":
        """Split a record URI into repository, collection and record key.

        Raises:
            InvalidArgumentError: if ``uri`` is not a full record URI.
        """
        match = _AT_URI.match(uri) if isinstance(uri, str) else None
        if not match:
            raise InvalidArgumentError(
                f"Invalid AT URI: {uri!r}. Expected at://<repository>/<collection>/<record-key>",
                error_code=ErrorCode.INVALID_URI,
                details={"uri": uri},
            )
        return cls(
            host=match.group("host"),
            collection=match.group("collection"),
            rkey=match.group("rkey"),
        )

    @property
    def repo(self) -> str:
        """Alias for ``host``; the repository is addressed by DID or handle."""
        return self.host

    def __str__(self) -> str:
        return f"at://{self.host}/{self.collection}/{self.rkey}"


@dataclass(frozen=True)
class StrongRef:
    """A reference to a specific version of a record."""

    uri: str
    cid: str

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "StrongRef":
        return cls(uri=data["uri"], cid=data["cid"])

    def to_record(self) -> dict[str, str]:
        return {"uri": self.uri, "cid": self.cid}
