"""Command-line entry point."""

from __future__ import annotations

import os
import subprocess
import sys

from .buffer import DEFAULT_OUTPUT
from .client import msg_write_buffer
from .htmlformat import DEFAULT_DEST, format_buffer_html
from .protocol import default_socket_path
from .server import start_server
from .shell import init_client

USAGE = (
    "Usage:\n"
    "\tptyb\t Start PTYBuffer\n"
    "\tptyb write [editor]\twrite buffer and open it in a text editor. "
    "If no editor is specified, file is opened using xdg-open.\n"
    "\tptyb start_server\tStart server without starting client."
)


def _write(socket_path: str, target: str | None) -> None:
    msg_write_buffer(socket_path, "ISPTYB" in os.environ)
    if target == "html":
        format_buffer_html()
        subprocess.run(["xdg-open", f"./{DEFAULT_DEST}"], check=False)
    elif target:
        subprocess.Popen([target, f"./{DEFAULT_OUTPUT}"])
    else:
        subprocess.Popen(["xdg-open", f"./{DEFAULT_OUTPUT}"])


def main(argv=None) -> int:
    """Run the ``ptyb`` command and return its exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    command = args[0] if args else "init"
    if command not in ("init", "start_server", "write"):
        print(USAGE)
        return 0
    socket_path = default_socket_path()
    try:
        if command == "init":
            return init_client(socket_path)
        if command == "start_server":
            return start_server(socket_path)
        _write(socket_path, args[1] if len(args) > 1 else None)
    except OSError as exc:
        print(f"ptyb: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())