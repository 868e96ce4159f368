"""SQL statement builders."""

from .statements import RowStatementBuilder

__all__ = ["RowStatementBuilder"]
