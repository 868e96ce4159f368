"""Core SQL utilities package."""

from .identifier import qualify_table, quote_identifier, scalar_variable_name

__all__ = [
    "quote_identifier",
    "qualify_table",
    "scalar_variable_name",
]
