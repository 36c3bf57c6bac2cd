"""Trigger that asks a remote decision server whether to inject a fault."""

from __future__ import annotations

import socket
from typing import Any

from .base import Settings, Trigger

DEFAULT_HOST = "myServerName"
DEFAULT_PORT = 11111
REPLY_SIZE = 10


class NetInspector(Trigger):
    """Sends "<function> <length>" to a server and fires when it answers '1'.

    Intended for send-style calls: (socket, message, length, flags, addr, addrlen).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        connection: socket.socket | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(settings, **kwargs)
        self._sock = (
            connection
            if connection is not None
            else socket.create_connection((host, port))
        )

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if not self.active():
            self._log(f"Eval fn={function_name}, false")
            return False
        length = int(args[2])
        self._sock.sendall(f"{function_name} {length}".encode())
        reply = self._sock.recv(REPLY_SIZE)
        result = reply[:1] == b"1"
        self._log(f"Eval fn={function_name}, {'true' if result else 'false'}")
        return result

    def close(self) -> None:
        """Close the connection to the decision server."""
        self._sock.close()

    def __enter__(self) -> NetInspector:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()