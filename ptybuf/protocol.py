"""Wire protocol and Unix socket helpers shared by the client and server."""

from __future__ import annotations

import enum
import os
import socket
import struct

#: Size of ``sun_path`` in ``struct sockaddr_un``, including the terminator.
SUN_PATH_MAX = 108

#: Value sent in place of a client flag to announce a control message.
MESSAGE_MARKER = -1

_SIGNED = struct.Struct("=i")
_UNSIGNED = struct.Struct("=I")
INT_SIZE = _SIGNED.size


class MessageType(enum.IntEnum):
    """Control message types understood by the server."""

    CLIENT_ATTACH = 1
    CLIENT_DETACH = 2
    WRITE_BUFFER = 3


class SocketPathTooLong(ValueError):
    """Raised when a socket path does not fit in a Unix socket address."""


def default_socket_path(uid: int | None = None) -> str:
    """Return the per-user socket path, using the current uid by default."""
    if uid is None:
        uid = os.getuid()
    return f"/run/user/{uid}/ptyb.sock"


def check_socket_path(path: str | os.PathLike) -> str:
    """Return ``path`` as a string, or raise if it is too long for a socket."""
    text = os.fspath(path)
    if isinstance(text, bytes):
        text = os.fsdecode(text)
    if len(os.fsencode(text)) > SUN_PATH_MAX - 1:
        raise SocketPathTooLong(f"server socket path too long: {text!r}")
    return text


def _unix_socket() -> socket.socket:
    return socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)


def connect_socket(path: str | os.PathLike) -> socket.socket:
    """Open a stream connection to the server listening at ``path``."""
    address = check_socket_path(path)
    sock = _unix_socket()
    try:
        sock.connect(address)
    except OSError:
        sock.close()
        raise
    return sock


def bind_socket(path: str | os.PathLike) -> socket.socket:
    """Create a stream socket bound to ``path``."""
    address = check_socket_path(path)
    sock = _unix_socket()
    try:
        sock.bind(address)
    except OSError:
        sock.close()
        raise
    return sock


def pack_int(value: int) -> bytes:
    """Encode a 32-bit integer in native byte order."""
    try:
        if value >= 2**31:
            return _UNSIGNED.pack(value)
        return _SIGNED.pack(value)
    except struct.error as exc:
        raise ValueError(f"{value} does not fit in 32 bits") from exc


def unpack_int(data: bytes) -> int:
    """Decode a signed 32-bit integer in native byte order."""
    if len(data) != INT_SIZE:
        raise ValueError(f"expected {INT_SIZE} bytes, got {len(data)}")
    return _SIGNED.unpack(data)[0]


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    received = bytearray()
    while len(received) < size:
        chunk = sock.recv(size - len(received))
        if not chunk:
            raise ConnectionError("connection closed before a full integer arrived")
        received += chunk
    return bytes(received)


def recv_int(sock: socket.socket) -> int:
    """Read one signed 32-bit integer from ``sock``."""
    return unpack_int(_recv_exact(sock, INT_SIZE))