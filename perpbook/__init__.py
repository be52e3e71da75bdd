"""In-memory order book sides, event queue and oracle account decoding for perpetual futures."""

__version__ = "0.1.0"
__all__ = ["types", "oracle", "queue", "nodes", "bookside", "book"]