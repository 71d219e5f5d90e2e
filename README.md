# ptybuf

`ptybuf` runs bash inside a pseudo-terminal and keeps a copy of everything
that passes through it. When you want to look at the output of recent
commands in an editor, ask for it to be written to a file.

A small background server, reached over a Unix socket at
`/run/user/<uid>/ptyb.sock`, holds the recorded text. The first shell session
starts it if the socket file does not exist yet, and it stops when the last
session detaches.

## Installation

```
pip install .
```

## Usage

Start a recorded shell:

```
ptyb
```

or, the same thing:

```
ptyb init
```

The shell is started with the environment variable `ISPTYB=true`. Leaving
it (with `exit` or Ctrl-D) detaches the session from the server.

Write the recorded buffer to `./ptyb_buffer.txt` and open it with
`xdg-open`:

```
ptyb write
```

Open it with a particular program instead:

```
ptyb write vim
```

Render the buffer as an HTML table in `./ptyb_formatted_buffer.html` and
open it with `xdg-open`:

```
ptyb write html
```

Each line of the file becomes a table row and each word separated by spaces
or tabs becomes a cell; lines longer than 255 characters are split over
several rows. The page links a `style.css` next to it, which ptybuf does not
create.

When run inside a recorded shell (where `ISPTYB` is set), `ptyb write`
writes the output of the previous command rather than the one currently
running, so you get the output you were just looking at. If there is no
previous command yet, nothing is written.

Run the server on its own, in the foreground, without starting a shell:

```
ptyb start_server
```

It prints the current buffer after every message it receives; Ctrl-C stops
it and removes the socket file.

Any other subcommand prints a short usage message.

## What gets written

Before the buffer is saved, ANSI colour/mode escape sequences
(`ESC [ ... m` and `ESC [ ... l`), xterm window-title sequences (everything on
a line up to a BEL character) and stray `004l\r` fragments are removed
(`ptybuf.buffer.strip_control_sequences`) so the file reads as plain text.

## Using it from Python

- `ptybuf.buffer.PtyBuffer` stores text in 1023-byte chunks; `insert`
  accepts at most 1024 bytes at a time and raises `BufferInsertError`
  otherwise. `write_buffer(buffer, path)` saves a cleaned copy.
- `ptybuf.htmlformat.render_html(lines)` and
  `format_buffer_html(source, dest)` produce the HTML table.
- `ptybuf.server.BufferServer` is the socket server, usable as a context
  manager; `ptybuf.client` has the matching messages (`get_cid`,
  `message_server`, `msg_write_buffer`, `msg_client_closed`).

## Limitations

- Linux only: it needs a pseudo-terminal, Unix sockets and
  `/run/user/<uid>`.
- The shell is always `bash`; there is no option to choose another.
- All sessions share one buffer on the server, so output from several shells
  at once is interleaved.
- Words are put into the HTML page as they are, without escaping.

## Running the tests

```
pip install .[test]
pytest
```