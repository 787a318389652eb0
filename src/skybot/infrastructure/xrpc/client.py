"""XRPC transport over HTTP using httpx.

XRPC methods are addressed by NSID (``com.atproto.repo.getRecord``).
Queries are ``GET /xrpc/<nsid>?params``, procedures are
``POST /xrpc/<nsid>`` with a JSON body. A failed call still yields a
response object carrying the server's error body; only network-level
failures raise.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx
import structlog

from skybot.core.config import Settings, get_settings
from skybot.core.exceptions import TransportError
from skybot.domain.entities.session import AtpSession
from skybot.infrastructure.xrpc.namespace import SERVICE_NODE, OperationGroup

logger = structlog.get_logger()

MethodKind = Literal["query", "procedure"]

# Methods exposed by default. Anything added here becomes reachable (and
# throttled) through the bot's namespace without further wiring.
LEXICON_METHODS: dict[str, MethodKind] = {
    "com.atproto.server.createSession": "procedure",
    "com.atproto.server.getSession": "query",
    "com.atproto.server.refreshSession": "procedure",
    "com.atproto.server.deleteSession": "procedure",
    "com.atproto.identity.resolveHandle": "query",
    "com.atproto.repo.getRecord": "query",
    "com.atproto.repo.listRecords": "query",
    "com.atproto.repo.createRecord": "procedure",
    "com.atproto.repo.putRecord": "procedure",
    "com.atproto.repo.deleteRecord": "procedure",
    "app.bsky.actor.getProfile": "query",
    "app.bsky.actor.getProfiles": "query",
    "app.bsky.feed.getPostThread": "query",
    "app.bsky.feed.getPosts": "query",
    "app.bsky.feed.getAuthorFeed": "query",
    "app.bsky.feed.getTimeline": "query",
    "app.bsky.graph.getFollowers": "query",
    "app.bsky.graph.getFollows": "query",
    "app.bsky.notification.listNotifications": "query",
    "app.bsky.notification.updateSeen": "procedure",
    "chat.bsky.convo.getConvo": "query",
    "chat.bsky.convo.getConvoForMembers": "query",
    "chat.bsky.convo.listConvos": "query",
    "chat.bsky.convo.getMessages": "query",
    "chat.bsky.convo.sendMessage": "procedure",
    "chat.bsky.convo.deleteMessageForSelf": "procedure",
    "chat.bsky.convo.updateRead": "procedure",
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(name: str) -> str:
    """``getRecord`` -> ``get_record``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel_case(name: str) -> str:
    """``convo_id`` -> ``convoId``. Names without underscores pass through."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass
class XrpcResponse:
    """Outcome of an XRPC call."""

    success: bool
    status_code: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def error(self) -> str | None:
        """Error name from a failure body (e.g. ``RecordNotFound``)."""
        if isinstance(self.data, dict):
            return self.data.get("error")
        return None

    @property
    def message(self) -> str | None:
        if isinstance(self.data, dict):
            return self.data.get("message")
        return None


class XrpcClient:
    """HTTP client for a single XRPC service."""

    def __init__(
        self,
        service_url: str,
        *,
        timeout: float = 10.0,
        chat_proxy: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self.chat_proxy = chat_proxy
        self.session: AtpSession | None = None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "XrpcClient":
        settings = settings or get_settings()
        return cls(
            settings.service_url,
            timeout=settings.request_timeout,
            chat_proxy=settings.chat_proxy,
        )

    def _headers(self, nsid: str) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.session is not None:
            headers["Authorization"] = f"Bearer {self.session.access_jwt}"
        if self.chat_proxy and nsid.startswith("chat.bsky."):
            headers["atproto-proxy"] = self.chat_proxy
        return headers

    async def call(self, nsid: str, kind: MethodKind, **kwargs: Any) -> XrpcResponse:
        """Issue one XRPC request. snake_case keyword names go out as camelCase."""
        url = f"{self.service_url}/xrpc/{nsid}"
        payload = {to_camel_case(key): value for key, value in kwargs.items() if value is not None}
        start_time = time.perf_counter()

        try:
            if kind == "query":
                response = await self._http.get(url, params=payload, headers=self._headers(nsid))
            else:
                response = await self._http.post(url, json=payload, headers=self._headers(nsid))
        except httpx.HTTPError as e:
            logger.warning("xrpc_request_failed", nsid=nsid, error=str(e))
            raise TransportError(nsid, e) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "xrpc_request",
            nsid=nsid,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = {"error": "InvalidResponse", "message": response.text}

        return XrpcResponse(
            success=response.is_success,
            status_code=response.status_code,
            data=data,
            headers=dict(response.headers),
        )

    async def query(self, nsid: str, **params: Any) -> XrpcResponse:
        return await self.call(nsid, "query", **params)

    async def procedure(self, nsid: str, **body: Any) -> XrpcResponse:
        return await self.call(nsid, "procedure", **body)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "XrpcClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


class XrpcMethod:
    """A single remote method bound to a client."""

    def __init__(self, client: XrpcClient, nsid: str, kind: MethodKind) -> None:
        self.client = client
        self.nsid = nsid
        self.kind = kind
        self.__name__ = to_snake_case(nsid.rsplit(".", 1)[-1])
        self.__qualname__ = nsid

    async def __call__(self, **kwargs: Any) -> XrpcResponse:
        return await self.client.call(self.nsid, self.kind, **kwargs)

    def __repr__(self) -> str:
        return f"XrpcMethod({self.nsid!r}, {self.kind!r})"


def build_namespace(
    client: XrpcClient, methods: dict[str, MethodKind] | None = None
) -> OperationGroup:
    """Build the operation tree for ``methods`` (defaults to ``LEXICON_METHODS``).

    ``com.atproto.repo.getRecord`` lands at ``com.atproto.repo.get_record``.
    The client itself is kept under the reserved ``_service`` node.
    """
    root = OperationGroup()
    for nsid, kind in (methods or LEXICON_METHODS).items():
        *groups, method = nsid.split(".")
        root.add(".".join([*groups, to_snake_case(method)]), XrpcMethod(client, nsid, kind))
    root.add(SERVICE_NODE, client)
    return root
