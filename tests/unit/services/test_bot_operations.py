"""Unit tests for the Bot's remote operations."""

from unittest.mock import AsyncMock

import pytest

from skybot.core.exceptions import (
    ConversationNotFoundError,
    CreatePostError,
    ErrorCode,
    FetchPostError,
    FetchProfileError,
    InvalidArgumentError,
    NoSessionError,
    PostNotFoundError,
    ProfileNotFoundError,
    SendMessageError,
)
from skybot.domain.entities.chat_message import DELETED_MESSAGE_VIEW_TYPE, ChatMessagePayload
from skybot.domain.entities.facet import Facet, Mention
from skybot.domain.entities.post import POST_COLLECTION, PostPayload
from skybot.domain.services.bot import Bot, is_not_found
from skybot.infrastructure.richtext.provider import RichText
from skybot.infrastructure.xrpc.client import XrpcResponse
from tests.fakes import BOB_DID, OWN_DID, CountingThrottle, fail, message_view, ok

POST_URI = f"at://{BOB_DID}/app.bsky.feed.post/xyz"

SESSION_GATED = [
    ("get_post", (POST_URI,)),
    ("get_profile", (BOB_DID,)),
    ("resolve_handle", ("bob.test",)),
    ("post", ({"text": "hello"},)),
    ("get_conversation", ("convo-1",)),
    ("get_messages", ("convo-1",)),
    ("send_message", (ChatMessagePayload(conversation_id="convo-1", text="hi"),)),
]


class TestSessionGating:
    @pytest.mark.parametrize("method, args", SESSION_GATED)
    async def test_requires_login(
        self,
        bot: Bot,
        operations: dict[str, AsyncMock],
        throttle: CountingThrottle,
        method: str,
        args: tuple,
    ):
        with pytest.raises(NoSessionError) as exc_info:
            await getattr(bot, method)(*args)

        assert exc_info.value.error_code == ErrorCode.NO_SESSION
        assert throttle.acquired == 0
        assert all(not operation.await_count for operation in operations.values())


class TestIsNotFound:
    @pytest.mark.parametrize(
        "response, expected",
        [
            (fail(404, "Whatever"), True),
            (fail(400, "RecordNotFound"), True),
            (fail(400, "InvalidRequest", "Could not locate record: Not Found"), True),
            (fail(400, "InvalidRequest", "Bad repo"), False),
            (fail(500, "InternalServerError"), False),
        ],
    )
    def test_classification(self, response, expected: bool):
        assert is_not_found(response) is expected


class TestGetPost:
    async def test_fetches_record_and_author(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        post = await logged_in_bot.get_post(POST_URI)

        operations["com.atproto.repo.get_record"].assert_awaited_once_with(
            repo=BOB_DID, collection=POST_COLLECTION, rkey="xyz"
        )
        operations["app.bsky.actor.get_profile"].assert_awaited_once_with(actor=BOB_DID)
        assert post.uri == POST_URI
        assert post.cid == "bafy-post"
        assert post.text == "a post"
        assert post.author is not None
        assert post.author.did == BOB_DID
        assert await post.get_author() is post.author

    async def test_not_found(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["com.atproto.repo.get_record"].return_value = fail(
            400, "RecordNotFound", "Could not locate record"
        )

        with pytest.raises(PostNotFoundError) as exc_info:
            await logged_in_bot.get_post(POST_URI)

        assert exc_info.value.details == {"uri": POST_URI}
        operations["app.bsky.actor.get_profile"].assert_not_awaited()

    async def test_other_failure(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["com.atproto.repo.get_record"].return_value = fail(502, "UpstreamFailure")

        with pytest.raises(FetchPostError) as exc_info:
            await logged_in_bot.get_post(POST_URI)

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["response"] == {"error": "UpstreamFailure"}

    async def test_success_without_record_value(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        body = {"uri": POST_URI, "cid": "bafy-post"}
        operations["com.atproto.repo.get_record"].return_value = ok(body)

        with pytest.raises(FetchPostError) as exc_info:
            await logged_in_bot.get_post(POST_URI)

        assert exc_info.value.details["response"] == body
        operations["app.bsky.actor.get_profile"].assert_not_awaited()

    @pytest.mark.parametrize("uri", ["", "https://bsky.app/post/1", "at://did:plc:bob/only"])
    async def test_malformed_uri_makes_no_call(
        self,
        logged_in_bot: Bot,
        operations: dict[str, AsyncMock],
        throttle: CountingThrottle,
        uri: str,
    ):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await logged_in_bot.get_post(uri)

        assert exc_info.value.error_code == ErrorCode.INVALID_URI
        operations["com.atproto.repo.get_record"].assert_not_awaited()
        assert throttle.acquired == 0


class TestGetProfile:
    async def test_success(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        profile = await logged_in_bot.get_profile(BOB_DID)

        assert profile.did == BOB_DID
        assert profile.handle == "bob.test"
        assert profile.display_name == "Bob"

    async def test_not_found(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["app.bsky.actor.get_profile"].side_effect = None
        operations["app.bsky.actor.get_profile"].return_value = fail(
            400, "InvalidRequest", "Profile not found"
        )

        with pytest.raises(ProfileNotFoundError):
            await logged_in_bot.get_profile("did:plc:nobody")

    async def test_other_failure(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["app.bsky.actor.get_profile"].side_effect = None
        operations["app.bsky.actor.get_profile"].return_value = fail(500, "InternalServerError")

        with pytest.raises(FetchProfileError):
            await logged_in_bot.get_profile(BOB_DID)


class TestResolveHandle:
    async def test_resolves(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        assert await logged_in_bot.resolve_handle("@bob.test") == BOB_DID
        operations["com.atproto.identity.resolve_handle"].assert_awaited_once_with(
            handle="bob.test"
        )

    async def test_unresolved_is_none(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["com.atproto.identity.resolve_handle"].return_value = fail(
            400, "InvalidRequest", "Unable to resolve handle"
        )

        assert await logged_in_bot.resolve_handle("ghost.test") is None


class TestCreatePost:
    async def test_end_to_end(
        self,
        logged_in_bot: Bot,
        operations: dict[str, AsyncMock],
        detector: AsyncMock,
    ):
        mention = Facet(byte_start=6, byte_end=15, features=(Mention(did=BOB_DID),))
        detector.detect.side_effect = lambda text: RichText(text=text, facets=[mention])

        post = await logged_in_bot.post({"text": "hello @bob.test"})

        detector.detect.assert_awaited_once_with("hello @bob.test")
        create_record = operations["com.atproto.repo.create_record"]
        create_record.assert_awaited_once()
        kwargs = create_record.await_args.kwargs
        assert kwargs["repo"] == OWN_DID
        assert kwargs["collection"] == POST_COLLECTION
        record = kwargs["record"]
        assert record["$type"] == POST_COLLECTION
        assert record["text"] == "hello @bob.test"
        assert record["langs"] == ["en", "fr"]
        assert record["facets"] == [mention.to_record()]
        assert "createdAt" in record

        assert post.uri == f"at://{OWN_DID}/app.bsky.feed.post/new"
        assert post.cid == "bafy-new"
        assert post.facets == (mention,)
        assert post.author is logged_in_bot.profile
        operations["app.bsky.actor.get_profile"].assert_not_awaited()

    async def test_explicit_langs_are_kept(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        await logged_in_bot.post(PostPayload(text="hallo", langs=["de"]))

        record = operations["com.atproto.repo.create_record"].await_args.kwargs["record"]
        assert record["langs"] == ["de"]

    async def test_given_facets_skip_detection(self, logged_in_bot: Bot, detector: AsyncMock):
        facet = Facet(byte_start=0, byte_end=5, features=(Mention(did=BOB_DID),))

        post = await logged_in_bot.post(PostPayload(text="hello", facets=[facet]))

        detector.detect.assert_not_awaited()
        assert post.facets == (facet,)

    async def test_detection_can_be_disabled(self, logged_in_bot: Bot, detector: AsyncMock):
        post = await logged_in_bot.post({"text": "hello @bob.test"}, resolve_facets=False)

        detector.detect.assert_not_awaited()
        assert post.facets == ()

    async def test_payload_is_not_mutated(self, logged_in_bot: Bot):
        payload = PostPayload(text="hello")

        await logged_in_bot.post(payload)

        assert payload.langs is None

    async def test_rejected(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        operations["com.atproto.repo.create_record"].return_value = fail(
            400, "InvalidRecord", "Record/text must not be longer than 300 graphemes"
        )

        with pytest.raises(CreatePostError) as exc_info:
            await logged_in_bot.post({"text": "x" * 400})

        assert exc_info.value.status_code == 400
        assert exc_info.value.details["response"]["error"] == "InvalidRecord"

    @pytest.mark.parametrize("body", [{}, {"uri": "at://did:plc:alice/app.bsky.feed.post/1"}, None])
    async def test_malformed_success_body(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock], body
    ):
        operations["com.atproto.repo.create_record"].return_value = XrpcResponse(
            success=True, status_code=200, data=body
        )

        with pytest.raises(CreatePostError) as exc_info:
            await logged_in_bot.post({"text": "hello"}, resolve_facets=False)

        assert exc_info.value.status_code == 200
        assert exc_info.value.details["response"] == body

    async def test_missing_own_profile(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        logged_in_bot.profile = None

        with pytest.raises(NoSessionError):
            await logged_in_bot.post({"text": "hello"})

        operations["com.atproto.repo.create_record"].assert_not_awaited()


class TestChat:
    async def test_get_conversation(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        conversation = await logged_in_bot.get_conversation("convo-1")

        assert conversation.id == "convo-1"
        assert conversation.member_dids == (OWN_DID, BOB_DID)
        operations["chat.bsky.convo.get_convo"].assert_awaited_once_with(convo_id="convo-1")

    async def test_get_conversation_not_found(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        operations["chat.bsky.convo.get_convo"].return_value = fail(400, "InvalidConvo")

        with pytest.raises(ConversationNotFoundError):
            await logged_in_bot.get_conversation("missing")

    async def test_get_messages_skips_deleted(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        operations["chat.bsky.convo.get_messages"].return_value = ok(
            {
                "messages": [
                    message_view("m1", BOB_DID),
                    {"$type": DELETED_MESSAGE_VIEW_TYPE, "id": "m2", "sender": {"did": BOB_DID}},
                    message_view("m3", OWN_DID),
                ],
                "cursor": "next",
            }
        )

        page = await logged_in_bot.get_messages("convo-1", limit=3)

        assert [message.id for message in page.messages] == ["m1", "m3"]
        assert all(message.conversation_id == "convo-1" for message in page.messages)
        assert page.cursor == "next"

    async def test_get_messages_walks_pages(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        get_messages = operations["chat.bsky.convo.get_messages"]
        get_messages.side_effect = [
            ok({"messages": [message_view("m2", BOB_DID)], "cursor": "page-2"}),
            ok({"messages": [message_view("m1", OWN_DID)]}),
        ]

        seen: list[str] = []
        cursor = None
        while True:
            page = await logged_in_bot.get_messages("convo-1", limit=1, cursor=cursor)
            seen.extend(message.id for message in page.messages)
            cursor = page.cursor
            if cursor is None:
                break

        assert seen == ["m2", "m1"]
        assert get_messages.await_args_list[1].kwargs == {
            "convo_id": "convo-1",
            "limit": 1,
            "cursor": "page-2",
        }

    async def test_send_message(self, logged_in_bot: Bot, operations: dict[str, AsyncMock]):
        message = await logged_in_bot.send_message(
            ChatMessagePayload(conversation_id="convo-1", text="sent")
        )

        assert message.id == "m2"
        assert message.text == "sent"
        operations["chat.bsky.convo.send_message"].assert_awaited_once_with(
            convo_id="convo-1", message={"text": "sent"}
        )

    async def test_send_message_rejected(
        self, logged_in_bot: Bot, operations: dict[str, AsyncMock]
    ):
        operations["chat.bsky.convo.send_message"].return_value = fail(
            400, "InvalidRequest", "recipient has disabled incoming messages"
        )

        with pytest.raises(SendMessageError):
            await logged_in_bot.send_message(
                ChatMessagePayload(conversation_id="convo-1", text="hi")
            )


class TestThrottling:
    @pytest.mark.parametrize(
        "method, args",
        [
            ("get_profile", (BOB_DID,)),
            ("resolve_handle", ("bob.test",)),
            ("get_conversation", ("convo-1",)),
            ("get_messages", ("convo-1",)),
        ],
    )
    async def test_each_call_takes_one_token(
        self, logged_in_bot: Bot, throttle: CountingThrottle, method: str, args: tuple
    ):
        await getattr(logged_in_bot, method)(*args)

        assert throttle.acquired == 1

    async def test_post_takes_one_token(self, logged_in_bot: Bot, throttle: CountingThrottle):
        await logged_in_bot.post({"text": "hello"}, resolve_facets=False)

        assert throttle.acquired == 1

    async def test_get_post_takes_a_token_per_request(
        self, logged_in_bot: Bot, throttle: CountingThrottle
    ):
        await logged_in_bot.get_post(POST_URI)

        # getRecord + getProfile for the author
        assert throttle.acquired == 2
