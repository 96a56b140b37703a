"""Asyncio client library for the Graal game server protocols (v4, v5 and v6)."""

__version__ = "0.1.0"