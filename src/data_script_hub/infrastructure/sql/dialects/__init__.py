"""Compatibility strategies for sub-select support."""

from .compatibility import (
    CompatibilityStrategy,
    HoistState,
    LegacyCompatibility,
    ModernCompatibility,
    get_compatibility,
)

__all__ = [
    "CompatibilityStrategy",
    "HoistState",
    "LegacyCompatibility",
    "ModernCompatibility",
    "get_compatibility",
]
