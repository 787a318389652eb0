"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the client."""

    # Session errors
    NO_SESSION = "NO_SESSION"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INVALID_SESSION = "INVALID_SESSION"

    # Validation errors
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_URI = "INVALID_URI"

    # Not found errors
    NOT_FOUND = "NOT_FOUND"
    POST_NOT_FOUND = "POST_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"

    # Remote rejections
    CREATE_POST_FAILED = "CREATE_POST_FAILED"
    FETCH_POST_FAILED = "FETCH_POST_FAILED"
    FETCH_PROFILE_FAILED = "FETCH_PROFILE_FAILED"
    FETCH_CONVERSATION_FAILED = "FETCH_CONVERSATION_FAILED"
    SEND_MESSAGE_FAILED = "SEND_MESSAGE_FAILED"

    # Transport errors
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


class AppException(Exception):
    """Base client exception.

    ``status_code`` is the HTTP status returned by the remote service, when the
    error originated from a response. ``details`` carries the server's
    diagnostic body or other context.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NoSessionError(AppException):
    """An operation was attempted before logging in."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.NO_SESSION,
            message="Active session not found. Make sure to call the login method first.",
        )


class InvalidArgumentError(AppException):
    """Input could not be interpreted."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_ARGUMENT,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            details=details,
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Failed to log in. Double check your credentials and try again.",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            details=details,
        )


class NotFoundError(AppException):
    """A referenced record does not exist remotely."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            details=details,
        )


class PostNotFoundError(NotFoundError):
    """Post not found."""

    def __init__(self, uri: str, status_code: int | None = None) -> None:
        super().__init__(
            message=f"Post not found: {uri}",
            error_code=ErrorCode.POST_NOT_FOUND,
            status_code=status_code,
            details={"uri": uri},
        )


class ProfileNotFoundError(NotFoundError):
    """Profile not found."""

    def __init__(self, actor: str, status_code: int | None = None) -> None:
        super().__init__(
            message=f"Profile not found: {actor}",
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            status_code=status_code,
            details={"actor": actor},
        )


class ConversationNotFoundError(NotFoundError):
    """Conversation not found."""

    def __init__(self, conversation_id: str, status_code: int | None = None) -> None:
        super().__init__(
            message=f"Conversation not found: {conversation_id}",
            error_code=ErrorCode.CONVERSATION_NOT_FOUND,
            status_code=status_code,
            details={"conversation_id": conversation_id},
        )


class RemoteOperationError(AppException):
    """The remote service rejected an operation.

    The server's response body is attached as ``details`` so that the
    rejection reason is available to the caller.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        operation: str,
        message: str,
        status_code: int | None = None,
        body: Any | None = None,
    ) -> None:
        self.operation = operation
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            details={"operation": operation, "response": body},
        )


class CreatePostError(RemoteOperationError):
    """Post creation was rejected."""

    def __init__(self, status_code: int | None = None, body: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.CREATE_POST_FAILED,
            operation="com.atproto.repo.createRecord",
            message=f"Failed to create post: {body}",
            status_code=status_code,
            body=body,
        )


class FetchPostError(RemoteOperationError):
    """Fetching a post failed for a reason other than absence."""

    def __init__(self, uri: str, status_code: int | None = None, body: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.FETCH_POST_FAILED,
            operation="com.atproto.repo.getRecord",
            message=f"Failed to fetch post {uri}: {body}",
            status_code=status_code,
            body=body,
        )


class FetchProfileError(RemoteOperationError):
    """Fetching a profile failed."""

    def __init__(self, actor: str, status_code: int | None = None, body: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.FETCH_PROFILE_FAILED,
            operation="app.bsky.actor.getProfile",
            message=f"Failed to fetch profile {actor}: {body}",
            status_code=status_code,
            body=body,
        )


class FetchConversationError(RemoteOperationError):
    """Fetching a conversation failed for a reason other than absence."""

    def __init__(
        self, conversation_id: str, status_code: int | None = None, body: Any | None = None
    ) -> None:
        super().__init__(
            error_code=ErrorCode.FETCH_CONVERSATION_FAILED,
            operation="chat.bsky.convo.getConvo",
            message=f"Failed to fetch conversation {conversation_id}: {body}",
            status_code=status_code,
            body=body,
        )


class SendMessageError(RemoteOperationError):
    """Sending a chat message was rejected."""

    def __init__(
        self, conversation_id: str, status_code: int | None = None, body: Any | None = None
    ) -> None:
        super().__init__(
            error_code=ErrorCode.SEND_MESSAGE_FAILED,
            operation="chat.bsky.convo.sendMessage",
            message=f"Failed to send message to {conversation_id}: {body}",
            status_code=status_code,
            body=body,
        )


class TransportError(AppException):
    """The request never produced a response (network failure, timeout)."""

    def __init__(self, nsid: str, error: Exception) -> None:
        super().__init__(
            error_code=ErrorCode.TRANSPORT_ERROR,
            message=f"Request to {nsid} failed: {error}",
            details={"nsid": nsid, "error_type": type(error).__name__},
        )
