import os
import socket
import tempfile
import threading
import time

import pytest

from ptybuf.client import (
    ServerUnavailable,
    get_cid,
    message_server,
    msg_client_closed,
    msg_write_buffer,
)
from ptybuf.protocol import MESSAGE_MARKER, MessageType, pack_int
from ptybuf.server import BufferServer


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory(prefix="pb") as directory:
        yield directory


@pytest.fixture
def running(workdir):
    srv = BufferServer(os.path.join(workdir, "s.sock"), os.path.join(workdir, "out.txt"))
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv, thread
    srv.close()
    thread.join(5)


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def fake_server(path, reply=b""):
    listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    listener.bind(path)
    listener.listen(1)
    received = bytearray()

    def run():
        conn, _ = listener.accept()
        with conn:
            if reply:
                while len(received) < 12:
                    chunk = conn.recv(12 - len(received))
                    if not chunk:
                        break
                    received.extend(chunk)
                conn.sendall(reply)
            while chunk := conn.recv(4096):
                received.extend(chunk)
        listener.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread, received


def test_get_cid_counts_up(running):
    srv, _ = running
    assert get_cid(srv.socket_path, False) == 0
    assert get_cid(srv.socket_path, False) == 1


def test_message_server_feeds_buffer(running):
    srv, _ = running
    message_server(srv.socket_path, "hello", False)
    wait_for(lambda: srv.client_buffer.text() == "hello")
    assert srv.client_buffer.text() == "hello"
    assert srv.prev_buffer is None


def test_msg_write_buffer_writes_file(running):
    srv, _ = running
    message_server(srv.socket_path, "hello", False)
    assert wait_for(lambda: srv.client_buffer.text() == "hello")
    assert msg_write_buffer(srv.socket_path, False) == 1
    with open(srv.output_path, encoding="utf-8") as handle:
        assert handle.read() == "hello"


def test_client_closed_stops_server(running):
    srv, thread = running
    get_cid(srv.socket_path, False)
    assert msg_client_closed(srv.socket_path) is True
    thread.join(5)
    assert not thread.is_alive()
    assert not os.path.exists(srv.socket_path)


def test_missing_server(workdir, capsys):
    path = os.path.join(workdir, "missing.sock")
    with pytest.raises(ServerUnavailable):
        get_cid(path, False)
    assert "Connection failed!" in capsys.readouterr().out
    with pytest.raises(ServerUnavailable):
        message_server(path, "x", True)
    with pytest.raises(ServerUnavailable):
        msg_write_buffer(path, True)
    assert msg_client_closed(path) is False


def test_client_closed_wire_bytes(workdir):
    path = os.path.join(workdir, "f.sock")
    thread, received = fake_server(path)
    msg_client_closed(path)
    thread.join(5)
    assert bytes(received) == pack_int(MESSAGE_MARKER) + pack_int(2) + pack_int(0)


def test_message_server_wire_bytes(workdir):
    path = os.path.join(workdir, "f.sock")
    thread, received = fake_server(path)
    message_server(path, b"ls\n\0ignored", True)
    thread.join(5)
    assert bytes(received) == pack_int(1) + b"ls\n"


def test_get_cid_wire_bytes(workdir):
    path = os.path.join(workdir, "f.sock")
    thread, received = fake_server(path, reply=pack_int(7))
    assert get_cid(path, False) == 7
    thread.join(5)
    expected = pack_int(MESSAGE_MARKER) + pack_int(MessageType.CLIENT_ATTACH) + pack_int(MESSAGE_MARKER)
    assert bytes(received) == expected


def test_write_buffer_wire_bytes(workdir):
    path = os.path.join(workdir, "f.sock")
    thread, received = fake_server(path, reply=pack_int(1))
    assert msg_write_buffer(path, True) == 1
    thread.join(5)
    assert bytes(received) == pack_int(MESSAGE_MARKER) + pack_int(MessageType.WRITE_BUFFER) + pack_int(1)