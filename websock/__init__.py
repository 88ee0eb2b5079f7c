"""WebSocket (RFC 6455) framing, masking, messages, codecs, handshake checks and a blocking server."""

__version__ = "0.26.5"

__all__ = [
    "codec",
    "dataframe",
    "errors",
    "frameheader",
    "handshake",
    "mask",
    "message",
    "server",
    "stream",
    "transport",
    "upgrade",
]