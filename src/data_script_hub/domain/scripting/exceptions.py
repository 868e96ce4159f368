"""
Exception hierarchy for data-script generation.

Every error carries enough context (table name, row index, column name) for
the caller to diagnose which part of a table stopped generation.
"""

from typing import Any, Dict, Optional


class ScriptGenerationError(Exception):
    """
    Base exception for all script generation errors.

    Args:
        message: Error description
        table_name: Table being scripted (optional)
        row_index: Zero-based index of the row being processed (optional)
        column_name: Column being formatted when the error occurred (optional)
    """

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        row_index: Optional[int] = None,
        column_name: Optional[str] = None,
    ):
        self.message = message
        self.table_name = table_name
        self.row_index = row_index
        self.column_name = column_name

        # Build contextual error message
        context_parts = []
        if table_name:
            context_parts.append(f"table='{table_name}'")
        if row_index is not None:
            context_parts.append(f"row_index={row_index}")
        if column_name:
            context_parts.append(f"column='{column_name}'")

        if context_parts:
            full_message = f"{message} ({', '.join(context_parts)})"
        else:
            full_message = message

        super().__init__(full_message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "table_name": self.table_name,
            "row_index": self.row_index,
            "column_name": self.column_name,
        }


class SchemaMismatchError(ScriptGenerationError):
    """Raised when a row's columns disagree with the table's schema."""

    pass


class NoIdentifyingColumnError(ScriptGenerationError):
    """Raised when no key, unique or identity value can build a WHERE clause."""

    pass


class NoWritableColumnError(ScriptGenerationError):
    """Raised when an UPDATE would have an empty SET list."""

    pass


class RelationshipFormatError(ScriptGenerationError):
    """
    Raised when relationship notation cannot be parsed.

    Args:
        notation: The offending notation text
    """

    def __init__(self, message: str, notation: str, **context: Any):
        self.notation = notation
        super().__init__(f"{message}: {notation!r}", **context)


class CircularReferenceError(ScriptGenerationError):
    """Raised when column token substitution refers back to itself."""

    pass


class TableDefinitionError(ScriptGenerationError):
    """Raised when a table definition file is missing or malformed."""

    pass


__all__ = [
    "ScriptGenerationError",
    "SchemaMismatchError",
    "NoIdentifyingColumnError",
    "NoWritableColumnError",
    "RelationshipFormatError",
    "CircularReferenceError",
    "TableDefinitionError",
]
