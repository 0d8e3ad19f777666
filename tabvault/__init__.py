"""Tabvault - crash-safe workspace snapshots and inactive-tab suspension."""

__version__ = "0.1.0"
