"""
Sibling-column token substitution.

Templates reference other columns of the same row with ``:columnName``
tokens. Lookup is case-insensitive; a token naming no column is left as is.
"""

import re
from typing import Callable, List, Optional

TOKEN_PATTERN = re.compile(r":([A-Za-z_]\w*)")


def find_tokens(template: str) -> List[str]:
    """Return the column names referenced by a template, in order of appearance."""
    return TOKEN_PATTERN.findall(template)


def substitute_tokens(template: str, resolve: Callable[[str], Optional[str]]) -> str:
    """
    Replace every ``:name`` token with ``resolve(name)``.

    Args:
        template: Text containing ``:columnName`` tokens
        resolve: Returns the literal for a column name, or None when the
            name is not a column of the row

    Examples:
        >>> substitute_tokens("[Name] = :name", {"name": "'Sales'"}.get)
        "[Name] = 'Sales'"
    """

    def _replace(match: "re.Match[str]") -> str:
        literal = resolve(match.group(1))
        return match.group(0) if literal is None else literal

    return TOKEN_PATTERN.sub(_replace, template)
