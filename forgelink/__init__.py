"""Forge abstraction layer for CI-invoked automation agents."""

__version__ = "0.1.0"
