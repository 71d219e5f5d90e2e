"""Unix socket server that collects terminal output from clients."""

from __future__ import annotations

import os
import socket
import sys

from .buffer import DEFAULT_OUTPUT, PtyBuffer, write_buffer
from .protocol import (
    MESSAGE_MARKER,
    MessageType,
    bind_socket,
    check_socket_path,
    pack_int,
    recv_int,
)

BACKLOG = 5
READ_SIZE = 1023
_UINT32_MASK = 0xFFFFFFFF
_POLL_INTERVAL = 0.2


class BufferServer:
    """Collects output sent by clients and writes it to a file on request."""

    def __init__(self, socket_path, output_path=DEFAULT_OUTPUT) -> None:
        self.socket_path = check_socket_path(socket_path)
        self.output_path = output_path
        self.clients = 0
        self.client_buffer = PtyBuffer(0)
        self.prev_buffer: PtyBuffer | None = None
        self._clear_flag = 1
        self._stop = False
        self._serving = False
        self._released = False
        self._sock = bind_socket(self.socket_path)
        self._sock.listen(BACKLOG)

    def handle_connection(self, conn: socket.socket) -> bool:
        """Process one connection; return False once the server should stop."""
        with conn:
            try:
                return self._dispatch(conn)
            except ConnectionError:
                return True

    def _dispatch(self, conn: socket.socket) -> bool:
        flag = recv_int(conn)
        if flag == MESSAGE_MARKER:
            mtype = recv_int(conn) & _UINT32_MASK
            target = recv_int(conn)
            if not self._control(conn, mtype, target):
                return False
        else:
            self._capture(conn, flag)
        self._show()
        return True

    def _control(self, conn: socket.socket, mtype: int, target: int) -> bool:
        try:
            kind = MessageType(mtype)
        except ValueError:
            return True
        if kind is MessageType.CLIENT_ATTACH:
            conn.sendall(pack_int(self.clients))
            print(f"client connected with number {self.clients}", flush=True)
            self.clients = (self.clients + 1) & _UINT32_MASK
        elif kind is MessageType.CLIENT_DETACH:
            self.clients = (self.clients - 1) & _UINT32_MASK
            if self.clients == 0:
                return False
        elif kind is MessageType.WRITE_BUFFER:
            chosen = self.prev_buffer if target == 1 else self.client_buffer
            try:
                write_buffer(chosen, self.output_path)
            except ValueError:
                pass
            conn.sendall(pack_int(1))
        return True

    def _capture(self, conn: socket.socket, flag: int) -> None:
        # Input that follows output starts a new command: keep the last one.
        if flag == 1 and self._clear_flag == 0:
            self.prev_buffer = self.client_buffer
            self.client_buffer = PtyBuffer(0)
        self._clear_flag = flag
        self.client_buffer.insert(conn.recv(READ_SIZE))

    def _show(self) -> None:
        shown = self.client_buffer.text().encode("utf-8", "surrogateescape")
        print(f"Buffer contents: {shown.decode('utf-8', 'replace')}\n", flush=True)

    def serve_forever(self) -> None:
        """Accept connections until the last client detaches or ``close`` is called."""
        if self._released:
            return
        self._serving = True
        self._sock.settimeout(_POLL_INTERVAL)
        try:
            while not self._stop:
                try:
                    conn, _ = self._sock.accept()
                except socket.timeout:
                    continue
                except OSError as exc:
                    if self._stop:
                        break
                    print(f"Error {exc.errno} on accept()", file=sys.stderr)
                    continue
                conn.settimeout(None)
                if not self.handle_connection(conn):
                    break
        finally:
            self._serving = False
            self._release()

    def close(self) -> None:
        """Stop serving, close the socket and remove the socket file."""
        self._stop = True
        if not self._serving:
            self._release()

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass
        self._sock.close()

    def __enter__(self) -> "BufferServer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def start_server(socket_path) -> int:
    """Run a server at ``socket_path`` until it stops; return the exit status."""
    server = BufferServer(socket_path)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
    return 0