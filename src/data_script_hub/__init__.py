"""Data Script Hub - deterministic SQL data-script generation."""

__version__ = "0.1.0"
