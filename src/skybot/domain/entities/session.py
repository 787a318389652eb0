"""Login inputs and session records."""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from skybot.core.exceptions import InvalidArgumentError


class SessionState(StrEnum):
    """Lifecycle of a bot's session."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"


class CredentialLogin(BaseModel):
    """Log in with an identifier (handle, email or DID) and password."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @property
    def normalized_identifier(self) -> str:
        """The identifier without a leading ``@``."""
        if self.identifier.startswith("@"):
            return self.identifier[1:]
        return self.identifier


class AtpSession(BaseModel):
    """A previously issued session (access/refresh token pair).

    Accepts the wire's camelCase keys (``accessJwt``) as well as snake_case.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    access_jwt: str = Field(alias="accessJwt", min_length=1)
    refresh_jwt: str = Field(alias="refreshJwt", min_length=1)
    did: str = Field(min_length=1)
    handle: str = ""
    email: str | None = None
    active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _did_from_token(cls, data: Any) -> Any:
        # Access tokens carry the account DID in ``sub``
        if not isinstance(data, Mapping) or data.get("did"):
            return data
        token = data.get("accessJwt") or data.get("access_jwt")
        if not isinstance(token, str) or not token:
            return data
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise ValueError("session has no did and the access token is unreadable") from e
        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise ValueError("session has no did and the access token carries no subject")
        return {**data, "did": sub}


LoginOptions = CredentialLogin | AtpSession

_SESSION_KEYS = ({"accessJwt", "access_jwt"}, {"refreshJwt", "refresh_jwt"})
_CREDENTIAL_KEYS = ("identifier", "password")


def parse_login_options(options: Any) -> LoginOptions:
    """Decide which login flow ``options`` asks for.

    Session data wins when it is present; otherwise an identifier and
    password are required.

    Raises:
        InvalidArgumentError: if ``options`` matches neither shape or is malformed.
    """
    if isinstance(options, (CredentialLogin, AtpSession)):
        return options

    if not isinstance(options, Mapping):
        raise InvalidArgumentError(
            "Invalid login options. You must provide either session data or an identifier & password.",
            details={"type": type(options).__name__},
        )

    keys = set(options)
    try:
        if all(keys & names for names in _SESSION_KEYS):
            return AtpSession.model_validate(dict(options))
        if all(key in keys for key in _CREDENTIAL_KEYS):
            return CredentialLogin.model_validate(dict(options))
    except ValidationError as e:
        raise InvalidArgumentError(
            "Invalid login options.",
            details={"errors": [error["msg"] for error in e.errors()]},
        ) from e

    raise InvalidArgumentError(
        "Invalid login options. You must provide either session data or an identifier & password.",
        details={"keys": sorted(keys)},
    )
