"""
Shared enums and value kinds for data-script generation.

This module has no dependencies on the rest of the package so that
configuration, infrastructure and domain code can all import it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import pandas as pd


class ScriptType(str, Enum):
    """Statement form produced for every row of a scripted table."""

    INSERT = "Insert"
    UPDATE = "Update"
    DELETE = "Delete"
    INSERT_UPDATE = "InsertUpdate"
    DELETE_INSERT = "DeleteInsert"
    REPLACE = "Replace"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ScriptType"]:
        # Accept "insertupdate", "insert_update", "INSERT-UPDATE" etc.
        if isinstance(value, str):
            folded = value.replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.value.lower() == folded:
                    return member
        return None


class CompatibilityLevel(str, Enum):
    """Dialect support for inline scalar sub-selects."""

    LEGACY = "legacy"
    MODERN = "modern"

    @classmethod
    def _missing_(cls, value: object) -> Optional["CompatibilityLevel"]:
        if isinstance(value, str):
            folded = value.strip().lower()
            aliases = {"sql_2005": cls.LEGACY, "sql_2008": cls.MODERN}
            if folded in aliases:
                return aliases[folded]
            for member in cls:
                if member.value == folded:
                    return member
        return None


class ValueKind(str, Enum):
    """How a cell's literal is produced."""

    LITERAL = "literal"
    MODIFIER = "modifier"
    SUBQUERY = "subquery"


class _Unset:
    """Marker for a cell whose value was never supplied."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class ScriptModifier:
    """
    An inline SQL expression used in place of a literal value.

    The template may reference sibling columns of the same row with
    ``:columnName`` tokens; each token is replaced by that column's literal
    and the expanded expression is wrapped in parentheses.

    Example:
        >>> ScriptModifier.parse("{:price * 2}").template
        ':price * 2'
    """

    template: str

    @staticmethod
    def is_bracketed(value: Any) -> bool:
        """Return True for a string of the form ``{...}``."""
        return (
            isinstance(value, str)
            and len(value) >= 2
            and value.startswith("{")
            and value.endswith("}")
        )

    @classmethod
    def parse(cls, text: str) -> "ScriptModifier":
        if not cls.is_bracketed(text):
            raise ValueError(f"Not a bracketed modifier: {text!r}")
        return cls(text[1:-1].strip())

    def __str__(self) -> str:
        return "{" + self.template + "}"


def is_null(value: Any) -> bool:
    """True for values that script as SQL ``null`` (None, UNSET, NaN, NaT, pd.NA)."""
    if value is None or value is UNSET:
        return True
    if not pd.api.types.is_scalar(value):
        return False
    return bool(pd.isna(value))


__all__ = [
    "ScriptType",
    "CompatibilityLevel",
    "ValueKind",
    "UNSET",
    "ScriptModifier",
    "is_null",
]
