"""Adaptive metrics polling and aggregation for a torrent-client dashboard."""

__version__ = "0.1.0"
