"""Network link emulator with a Go-Back-N sender and receiver."""

__version__ = "1.0.0"