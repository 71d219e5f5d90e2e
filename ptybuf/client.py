"""Client side of the server protocol."""

from __future__ import annotations

import os
import sys
import time

from .protocol import (
    MESSAGE_MARKER,
    MessageType,
    connect_socket,
    pack_int,
    recv_int,
)

_UINT32_MASK = 0xFFFFFFFF
#: Seconds to wait for a freshly started server before connecting again.
STARTUP_DELAY = 1.0


class ServerUnavailable(ConnectionError):
    """Raised when the server socket cannot be reached."""


def _connect(socket_path):
    try:
        return connect_socket(socket_path)
    except OSError as exc:
        raise ServerUnavailable(
            f"cannot connect to {os.fspath(socket_path)}: {exc.strerror or exc}"
        ) from exc


def _control(mtype: MessageType, target: int) -> bytes:
    return pack_int(MESSAGE_MARKER) + pack_int(int(mtype)) + pack_int(target)


def message_server(socket_path, message, from_input) -> None:
    """Send captured text; ``from_input`` marks keyboard input rather than output."""
    data = message.encode("utf-8", "surrogateescape") if isinstance(message, str) else bytes(message)
    data = data.split(b"\0", 1)[0]
    with _connect(socket_path) as sock:
        sock.sendall(pack_int(int(bool(from_input))) + data)


def _spawn_server(socket_path) -> None:
    from .server import start_server

    sys.stdout.flush()
    sys.stderr.flush()
    if os.fork() == 0:
        try:
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, 1)
            start_server(socket_path)
        finally:
            os._exit(0)


def get_cid(socket_path, start_if_missing=True) -> int:
    """Attach to the server and return the client number it assigns.

    When the socket file is missing and ``start_if_missing`` is true, a server
    is started in a child process and the connection is tried once more.
    """
    try:
        sock = connect_socket(socket_path)
    except OSError as exc:
        print("Connection failed!", flush=True)
        if not (start_if_missing and isinstance(exc, FileNotFoundError)):
            raise ServerUnavailable(
                f"cannot connect to {os.fspath(socket_path)}: {exc.strerror or exc}"
            ) from exc
        print("trying again...", flush=True)
        _spawn_server(socket_path)
        time.sleep(STARTUP_DELAY)
        sock = _connect(socket_path)
    with sock:
        sock.sendall(_control(MessageType.CLIENT_ATTACH, MESSAGE_MARKER))
        return recv_int(sock) & _UINT32_MASK


def msg_write_buffer(socket_path, previous) -> int:
    """Ask the server to write a buffer to its file; return the server's reply."""
    with _connect(socket_path) as sock:
        sock.sendall(_control(MessageType.WRITE_BUFFER, int(bool(previous))))
        return recv_int(sock)


def msg_client_closed(socket_path) -> bool:
    """Tell the server a client has gone; return False if it was unreachable."""
    try:
        sock = connect_socket(socket_path)
    except OSError:
        return False
    with sock:
        sock.sendall(_control(MessageType.CLIENT_DETACH, 0))
    return True