"""Run a shell on a pseudo-terminal and mirror its traffic to the server."""

from __future__ import annotations

import errno
import fcntl
import os
import pty
import select
import termios
import tty

from .client import get_cid, message_server, msg_client_closed

READ_SIZE = 1023
EOT = b"\x04"
SHELL = "bash"

_MASTER_EVENTS = select.POLLIN | select.POLLHUP | select.POLLERR
_STDIN_EVENTS = select.POLLIN | select.POLLHUP


def _write_all(fd: int, data: bytes) -> None:
    while data:
        written = os.write(fd, data)
        data = data[written:]


def relay(master_fd, socket_path, stdin_fd=0, stdout_fd=1) -> None:
    """Copy between the terminal and the pty master until the master closes.

    Output from the master goes to ``stdout_fd`` and input from ``stdin_fd``
    goes to the master; both are also sent to the server.
    """
    poller = select.poll()
    poller.register(master_fd, select.POLLIN)
    poller.register(stdin_fd, select.POLLIN)
    while True:
        events = dict(poller.poll())
        if events.get(master_fd, 0) & _MASTER_EVENTS:
            try:
                data = os.read(master_fd, READ_SIZE)
            except OSError as exc:
                if exc.errno == errno.EIO:
                    return
                raise
            if not data:
                return
            _write_all(stdout_fd, data)
            message_server(socket_path, data, False)
        stdin_events = events.get(stdin_fd, 0)
        if stdin_events & _STDIN_EVENTS:
            data = os.read(stdin_fd, READ_SIZE)
            if data:
                _write_all(master_fd, data)
                message_server(socket_path, data, True)
            else:
                # End of input (Ctrl-D): pass an EOT on to the shell.
                _write_all(master_fd, EOT)
                if stdin_events & select.POLLHUP:
                    poller.unregister(stdin_fd)


def _exec_shell(maid: int) -> None:
    try:
        tty.setraw(maid, termios.TCSANOW)
        os.environ["ISPTYB"] = "true"
        for fd in (0, 1, 2):
            os.dup2(maid, fd)
        if maid > 2:
            os.close(maid)
        os.setsid()
        fcntl.ioctl(0, termios.TIOCSCTTY, 1)
        os.execlp(SHELL, SHELL)
    finally:
        os._exit(1)


def init_client(socket_path) -> int:
    """Attach to the server, start a shell on a new pty and relay until it exits."""
    cid = get_cid(socket_path, True)
    print(f"client received cid {cid}.", flush=True)
    master, maid = pty.openpty()
    pid = os.fork()
    if pid == 0:
        os.close(master)
        _exec_shell(maid)
    os.close(maid)
    print("main started", flush=True)
    try:
        relay(master, socket_path)
    except KeyboardInterrupt:
        msg_client_closed(socket_path)
        return 1
    finally:
        os.close(master)
    os.waitpid(pid, 0)
    msg_client_closed(socket_path)
    return 0