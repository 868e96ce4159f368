"""
SQL module for data-script text generation.

This module provides identifier quoting, value-to-literal formatting,
relationship sub-selects, compatibility strategies and per-row statement
builders for T-SQL data scripts.
"""

from .core.identifier import qualify_table, quote_identifier, scalar_variable_name
from .core.literals import LiteralFormatter, format_literal, quote_text
from .core.relationship import Relationship
from .dialects.compatibility import (
    HoistState,
    LegacyCompatibility,
    ModernCompatibility,
    get_compatibility,
)
from .operations.statements import RowStatementBuilder

__all__ = [
    "quote_identifier",
    "qualify_table",
    "scalar_variable_name",
    "format_literal",
    "quote_text",
    "LiteralFormatter",
    "Relationship",
    "HoistState",
    "LegacyCompatibility",
    "ModernCompatibility",
    "get_compatibility",
    "RowStatementBuilder",
]
