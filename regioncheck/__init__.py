"""Probe domains through two proxy egresses and suggest region routing rules."""

__version__ = "0.1.0"
