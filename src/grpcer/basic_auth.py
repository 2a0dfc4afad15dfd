"""Username/password credentials for calls made through generated clients.

The credential travels as ``authorization: <username>:<password>`` metadata.
A pair set with :func:`with_basic_auth` takes precedence over a static
:class:`BasicAuth` pair when both are applied through :func:`call_metadata`.
grpc merges plugin metadata into the call rather than replacing it, so
:func:`basic_auth_call_credentials` always sends the static pair and should
not be combined with a context credential on the same call.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, List, Optional, Sequence, Tuple

import grpc

AUTHORIZATION_KEY = "authorization"

Metadata = Sequence[Tuple[str, str]]

_basic_auth: ContextVar[Optional[str]] = ContextVar(
    "Basic auth credential of the current context",
    default=None,
)


def _join(username: str, password: str) -> str:
    return f"{username}:{password}"


@contextmanager
def with_basic_auth(username: str, password: str) -> Iterator[None]:
    """Use *username* and *password* for calls made within the ``with`` block."""

    token = _basic_auth.set(_join(username, password))
    try:
        yield
    finally:
        _basic_auth.reset(token)


def get_basic_auth() -> Optional[str]:
    """Return the credential set by :func:`with_basic_auth`, or ``None``."""

    return _basic_auth.get()


class BasicAuth(grpc.AuthMetadataPlugin):
    """Static per-call credentials; grpc only sends them over secure channels."""

    def __init__(self, username: str, password: str) -> None:
        self._credential = _join(username, password)

    @property
    def credential(self) -> str:
        return self._credential

    def __call__(
        self,
        context: grpc.AuthMetadataContext,
        callback: grpc.AuthMetadataPluginCallback,
    ) -> None:
        callback(((AUTHORIZATION_KEY, self._credential),), None)


def call_metadata(
    metadata: Optional[Metadata] = None,
    *,
    default: Optional[BasicAuth] = None,
) -> List[Tuple[str, str]]:
    """Return *metadata* carrying exactly one basic-auth credential, if any applies.

    The context credential wins over *default*. grpc runs metadata plugins on
    its own threads, where context variables are not visible, so the choice is
    made here, per call::

        static = BasicAuth("service", "secret")
        with with_basic_auth("user", "secret"):
            client.call("SayHello", request, metadata=call_metadata(default=static))
    """

    result = list(metadata or ())
    credential = get_basic_auth()
    if credential is None and default is not None:
        credential = default.credential
    if credential:
        result = [(key, value) for key, value in result if key != AUTHORIZATION_KEY]
        result.append((AUTHORIZATION_KEY, credential))
    return result


def basic_auth_call_credentials(username: str, password: str) -> grpc.CallCredentials:
    """Return call credentials carrying *username* and *password* on every call.

    Combine with channel credentials, e.g.
    ``grpc.composite_channel_credentials(grpc.ssl_channel_credentials(), creds)``.
    Use :func:`call_metadata` with ``default=`` instead when a context
    credential may override the static one.
    """

    return grpc.metadata_call_credentials(BasicAuth(username, password), name="basic-auth")


__all__ = [
    "AUTHORIZATION_KEY",
    "BasicAuth",
    "basic_auth_call_credentials",
    "call_metadata",
    "get_basic_auth",
    "with_basic_auth",
]
