"""Runtime contract implemented by generated client adapters.

A generated ``<Service>Client`` lets callers invoke any method of a gRPC
service by name::

    client = greeter_grpcer.new_client(channel)
    request = client.input("SayHello")
    request.name = "world"
    for reply in client.call("SayHello", request, timeout=5):
        print(reply.message)

Unary and server-streaming methods both return a :class:`Receiver`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional, Sequence


class UnknownMethodError(LookupError):
    """Raised by :meth:`Client.call` for a name the service does not declare."""

    def __init__(self, name: str) -> None:
        super().__init__(f"name {name!r} not found")
        self.name = name


class Receiver(ABC):
    """Consumes the responses of one call, single or streamed."""

    @abstractmethod
    def recv(self) -> Any:
        """Return the next response, raising :class:`EOFError` once exhausted."""

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.recv()
            except EOFError:
                return


class Client(ABC):
    """Name-dispatched access to every method of one service."""

    @abstractmethod
    def methods(self) -> Sequence[str]:
        """Return the method names in declaration order."""

    @abstractmethod
    def input(self, name: str) -> Optional[Any]:
        """Return an empty request message for *name*, or ``None`` if unknown."""

    @abstractmethod
    def call(self, name: str, request: Any, **options: Any) -> Receiver:
        """Invoke *name* with *request*.

        *options* are grpc call options (``timeout``, ``metadata``,
        ``credentials``, ``wait_for_ready``, ``compression``) and are passed to
        the stub unchanged.
        """


__all__ = ["Client", "Receiver", "UnknownMethodError"]
