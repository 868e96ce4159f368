"""
Correlated look-ups between tables.

A relationship is written in the compact notation ``{Table.Column join}``,
for example ``{Department.Id [Name] = :deptname}``. Rendering produces
``select [Id] from [Department] where [Name] = 'Sales'``, with each
``:token`` replaced by the literal of the named sibling column.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from data_script_hub.domain.scripting.exceptions import RelationshipFormatError

from .identifier import qualify_table, quote_identifier
from .tokens import find_tokens, substitute_tokens

_LEADING_WHERE = re.compile(r"^where\s+", re.IGNORECASE)


@dataclass(frozen=True)
class Relationship:
    """Look-up of ``column_name`` in ``table_name`` restricted by ``join``."""

    table_name: str
    column_name: str
    join: str

    @classmethod
    def parse(cls, notation: str) -> "Relationship":
        """
        Parse ``{Table.Column joinExpr}`` notation.

        The braces are optional. A leading ``where`` keyword in the join
        expression is accepted and dropped.

        Raises:
            RelationshipFormatError: If the notation lacks a ``Table.Column``
                target or a join expression
        """
        if not isinstance(notation, str):
            raise RelationshipFormatError("Relationship notation must be text", repr(notation))

        body = notation.strip()
        if body.startswith("{") and body.endswith("}"):
            body = body[1:-1]
        parts = body.strip().split(None, 1)
        if len(parts) < 2:
            raise RelationshipFormatError("Invalid relationship format", notation)

        target, join = parts
        table_name, dot, column_name = target.rpartition(".")
        if not dot or not table_name or not column_name:
            raise RelationshipFormatError(
                "Relationship target must be Table.Column", notation
            )

        join = _LEADING_WHERE.sub("", join.strip())
        if not join:
            raise RelationshipFormatError("Relationship join expression is empty", notation)

        return cls(table_name=table_name, column_name=column_name, join=join)

    @property
    def tokens(self) -> List[str]:
        """Sibling column names referenced by the join expression."""
        return find_tokens(self.join)

    def render(self, resolve: Callable[[str], Optional[str]]) -> str:
        """Render the sub-select, resolving join tokens through ``resolve``."""
        where = substitute_tokens(self.join, resolve)
        return (
            f"select {quote_identifier(self.column_name)} "
            f"from {qualify_table(self.table_name)} where {where}"
        )

    def __str__(self) -> str:
        return f"{{ {self.table_name}.{self.column_name} {self.join} }}"


__all__ = ["Relationship"]
