"""Asyncio building blocks for MQTT: topics, wire field codecs, errors, sessions and ordered framed dispatch."""

__version__ = "0.1.0"
__all__ = ["dispatcher", "errors", "framed", "ordering", "session", "topic", "wire"]