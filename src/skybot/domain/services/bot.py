"""Bot facade: session lifecycle and the top-level remote operations."""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from skybot.core.config import Settings, get_settings
from skybot.core.exceptions import (
    AppException,
    AuthenticationError,
    ConversationNotFoundError,
    CreatePostError,
    ErrorCode,
    FetchConversationError,
    FetchPostError,
    FetchProfileError,
    NoSessionError,
    PostNotFoundError,
    ProfileNotFoundError,
    SendMessageError,
)
from skybot.core.rate_limit import TokenBucket
from skybot.domain.entities.chat_message import (
    DELETED_MESSAGE_VIEW_TYPE,
    ChatMessage,
    ChatMessagePayload,
    MessagePage,
)
from skybot.domain.entities.conversation import Conversation
from skybot.domain.entities.post import POST_COLLECTION, Post, PostPayload
from skybot.domain.entities.profile import Profile
from skybot.domain.entities.session import (
    AtpSession,
    CredentialLogin,
    SessionState,
    parse_login_options,
)
from skybot.domain.identifiers import AtUri
from skybot.infrastructure.richtext.detector import RegexFacetDetector
from skybot.infrastructure.richtext.provider import IFacetDetector
from skybot.infrastructure.xrpc.client import XrpcClient, XrpcResponse, build_namespace
from skybot.infrastructure.xrpc.interceptor import IThrottle, throttle_operations
from skybot.infrastructure.xrpc.namespace import SERVICE_NODE, OperationGroup

logger = structlog.get_logger()

NOT_FOUND_ERRORS = frozenset(
    {"RecordNotFound", "NotFound", "ProfileNotFound", "InvalidConvo", "ConvoNotFound"}
)


def is_not_found(response: XrpcResponse) -> bool:
    """Whether a failed response means the requested record does not exist."""
    if response.status_code == 404 or response.error in NOT_FOUND_ERRORS:
        return True
    return "not found" in (response.message or "").lower()


class Bot:
    """A bot account on an AT Protocol service.

    All remote operations go through ``api``, a copy of the transport's
    operation namespace in which every operation first takes a token from
    ``throttle``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        api: Mapping[str, Any] | None = None,
        throttle: IThrottle | None = None,
        facet_detector: IFacetDetector | None = None,
        langs: Iterable[str] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.langs: list[str] = list(langs) if langs is not None else self._settings.langs_list
        self.throttle = throttle or TokenBucket(
            capacity=self._settings.rate_limit,
            refill_interval=self._settings.rate_limit_interval,
        )

        if api is None:
            api = build_namespace(XrpcClient.from_settings(self._settings))
        self.api: OperationGroup = throttle_operations(api, self.throttle)

        self.facet_detector: IFacetDetector = facet_detector or RegexFacetDetector(
            self.resolve_handle
        )
        self.state = SessionState.LOGGED_OUT
        self.session: AtpSession | None = None
        self.profile: Profile | None = None
        self._login_lock = asyncio.Lock()

    # --- Session ---

    @property
    def has_session(self) -> bool:
        return self.state == SessionState.LOGGED_IN

    def _require_session(self) -> None:
        if self.state != SessionState.LOGGED_IN:
            raise NoSessionError()

    def _attach_session(self, session: AtpSession | None) -> None:
        service = self.api.get(SERVICE_NODE)
        if service is not None and hasattr(service, "session"):
            service.session = session

    def _reset(self) -> None:
        self._attach_session(None)
        self.session = None
        self.profile = None
        self.state = SessionState.LOGGED_OUT

    async def login(self, options: CredentialLogin | AtpSession | Mapping[str, Any]) -> AtpSession:
        """Log in with an identifier & password, or resume an existing session.

        Args:
            options: ``{"identifier": ..., "password": ...}`` or session data
                carrying ``accessJwt`` and ``refreshJwt`` (or the equivalent
                model instances).

        Returns:
            The active session.

        Raises:
            InvalidArgumentError: if ``options`` matches neither form.
            AuthenticationError: if the credentials or session are rejected.
            FetchProfileError: if the bot's own profile cannot be fetched.

        Concurrent calls are serialized; the last one to finish decides the
        bot's session.
        """
        login = parse_login_options(options)
        method = "resume" if isinstance(login, AtpSession) else "password"

        async with self._login_lock:
            self.state = SessionState.AUTHENTICATING
            logger.info("login_started", method=method)
            try:
                if isinstance(login, AtpSession):
                    session = await self._resume_session(login)
                else:
                    session = await self._create_session(login)

                # A session without the bot's own profile is treated as a failed login
                try:
                    profile = await self._fetch_profile(session.did)
                except FetchProfileError:
                    raise
                except AppException as e:
                    raise FetchProfileError(session.did, e.status_code, e.details) from e
            except BaseException as e:
                self._reset()
                logger.warning("login_failed", method=method, error=str(e))
                raise

            self.session = session
            self.profile = profile
            self.state = SessionState.LOGGED_IN
            logger.info("login_succeeded", method=method, did=session.did, handle=session.handle)
            return session

    async def _create_session(self, login: CredentialLogin) -> AtpSession:
        response = await self.api.com.atproto.server.create_session(
            identifier=login.normalized_identifier,
            password=login.password,
        )
        if not response.success:
            raise AuthenticationError(status_code=response.status_code, details=response.data)

        try:
            session = AtpSession.model_validate(response.data)
        except ValidationError as e:
            raise AuthenticationError(
                "Login succeeded but the service returned no usable session.",
                status_code=response.status_code,
                details=response.data,
            ) from e

        self._attach_session(session)
        return session

    async def _resume_session(self, session: AtpSession) -> AtpSession:
        self._attach_session(session)
        response = await self.api.com.atproto.server.get_session()
        if not response.success:
            raise AuthenticationError(
                "Provided session data is invalid, try logging in with identifier & password instead.",
                error_code=ErrorCode.INVALID_SESSION,
                status_code=response.status_code,
                details=response.data,
            )

        data = response.data or {}
        session = session.model_copy(
            update={
                "did": data.get("did") or session.did,
                "handle": data.get("handle") or session.handle,
            }
        )
        self._attach_session(session)
        return session

    # --- Profiles ---

    async def _fetch_profile(self, actor: str) -> Profile:
        response = await self.api.app.bsky.actor.get_profile(actor=actor)
        if not response.success:
            if is_not_found(response):
                raise ProfileNotFoundError(actor, response.status_code)
            raise FetchProfileError(actor, response.status_code, response.data)
        return Profile.from_view(response.data)

    async def get_profile(self, did: str) -> Profile:
        """Fetch a profile by DID (or handle)."""
        self._require_session()
        return await self._fetch_profile(did)

    async def resolve_handle(self, handle: str) -> str | None:
        """Resolve a handle to a DID. Returns None if it does not resolve."""
        self._require_session()
        response = await self.api.com.atproto.identity.resolve_handle(handle=handle.lstrip("@"))
        if not response.success:
            return None
        return (response.data or {}).get("did")

    # --- Posts ---

    async def get_post(self, uri: str) -> Post:
        """Fetch a post by its AT URI."""
        self._require_session()

        at_uri = AtUri.parse(uri)
        response = await self.api.com.atproto.repo.get_record(
            repo=at_uri.host,
            collection=at_uri.collection,
            rkey=at_uri.rkey,
        )
        if not response.success:
            if is_not_found(response):
                raise PostNotFoundError(uri, response.status_code)
            raise FetchPostError(uri, response.status_code, response.data)

        data = response.data
        record = data.get("value") if isinstance(data, dict) else None
        if not isinstance(record, dict):
            raise FetchPostError(uri, response.status_code, data)

        author = await self.get_profile(at_uri.host)
        return Post.from_record(
            data.get("uri", uri),
            data.get("cid", ""),
            record,
            author=author,
            bot=self,
        )

    async def post(
        self,
        payload: PostPayload | Mapping[str, Any],
        resolve_facets: bool = True,
    ) -> Post:
        """Create a post.

        Args:
            payload: The post to create.
            resolve_facets: Detect mentions, links and tags in the text. Ignored
                if the payload already has facets attached.
        """
        self._require_session()
        if self.profile is None:
            raise NoSessionError()

        post = PostPayload.from_data(payload)
        if not post.langs:
            post.langs = list(self.langs)

        if resolve_facets and not post.facets:
            rich_text = await self.facet_detector.detect(post.text)
            post.text = rich_text.text
            post.facets = rich_text.facets

        record = post.to_record()
        response = await self.api.com.atproto.repo.create_record(
            repo=self.profile.did,
            collection=POST_COLLECTION,
            record=record,
        )
        data = response.data if isinstance(response.data, dict) else {}
        if not response.success or not data.get("uri") or not data.get("cid"):
            raise CreatePostError(response.status_code, response.data)

        logger.info("post_created", uri=data["uri"])
        return Post.from_record(
            data["uri"],
            data["cid"],
            record,
            author=self.profile,
            bot=self,
        )

    # --- Chat ---

    async def get_conversation(self, conversation_id: str) -> Conversation:
        """Fetch a conversation by ID."""
        self._require_session()
        response = await self.api.chat.bsky.convo.get_convo(convo_id=conversation_id)
        if not response.success:
            if is_not_found(response):
                raise ConversationNotFoundError(conversation_id, response.status_code)
            raise FetchConversationError(conversation_id, response.status_code, response.data)
        return Conversation.from_view(response.data["convo"], bot=self)

    async def get_messages(
        self, conversation_id: str, limit: int = 50, cursor: str | None = None
    ) -> MessagePage:
        """Fetch a page of messages from a conversation. Deleted messages are skipped.

        Pass the returned page's ``cursor`` back in to fetch the next page;
        it is None once the history is exhausted.
        """
        self._require_session()
        response = await self.api.chat.bsky.convo.get_messages(
            convo_id=conversation_id, limit=limit, cursor=cursor
        )
        if not response.success:
            if is_not_found(response):
                raise ConversationNotFoundError(conversation_id, response.status_code)
            raise FetchConversationError(conversation_id, response.status_code, response.data)

        data = response.data or {}
        return MessagePage(
            messages=[
                ChatMessage.from_view(view, self, conversation_id)
                for view in data.get("messages", [])
                if view.get("$type") != DELETED_MESSAGE_VIEW_TYPE
            ],
            cursor=data.get("cursor"),
        )

    async def send_message(self, payload: ChatMessagePayload) -> ChatMessage:
        """Send a chat message."""
        self._require_session()
        response = await self.api.chat.bsky.convo.send_message(
            convo_id=payload.conversation_id,
            message=payload.to_message(),
        )
        if not response.success:
            raise SendMessageError(payload.conversation_id, response.status_code, response.data)

        logger.info("message_sent", conversation_id=payload.conversation_id)
        return ChatMessage.from_view(response.data, self, payload.conversation_id)

    # --- Lifecycle ---

    async def close(self) -> None:
        """Close the underlying transport."""
        service = self.api.get(SERVICE_NODE)
        if service is not None and hasattr(service, "aclose"):
            await service.aclose()

    async def __aenter__(self) -> "Bot":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
