"""Record shell output through a pseudo-terminal and write it to a file on demand."""

__version__ = "0.1.0"