"""Multi-reactor TCP networking: event loops, channels, buffers and a TCP server."""

__version__ = "0.1.0"