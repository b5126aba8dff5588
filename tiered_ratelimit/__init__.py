"""Tiered rate limiting service for HTTP APIs."""

__version__ = "0.1.0"
