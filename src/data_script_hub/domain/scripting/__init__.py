"""Data-script generation: table model, row sources and script service."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__all__ = [
    "ScriptType",
    "CompatibilityLevel",
    "ScriptModifier",
    "UNSET",
    "ScriptGenerationError",
    "SchemaMismatchError",
    "NoIdentifyingColumnError",
    "NoWritableColumnError",
    "RelationshipFormatError",
    "CircularReferenceError",
    "TableDefinitionError",
    "TableMetadata",
    "ScriptColumn",
    "ScriptRow",
    "ScriptTable",
    "ScriptAuthor",
    "ScriptGenerator",
    "generate_script",
    "generate_script_text",
    "write_script_file",
    "fill_from_frame",
    "fill_from_sqlalchemy",
    "load_table_definition",
]

# Submodules are imported on first attribute access; configuration imports
# ``types`` from this package before the models can be loaded.
_LOCATIONS = {
    "ScriptType": ".types",
    "CompatibilityLevel": ".types",
    "ScriptModifier": ".types",
    "UNSET": ".types",
    "ScriptGenerationError": ".exceptions",
    "SchemaMismatchError": ".exceptions",
    "NoIdentifyingColumnError": ".exceptions",
    "NoWritableColumnError": ".exceptions",
    "RelationshipFormatError": ".exceptions",
    "CircularReferenceError": ".exceptions",
    "TableDefinitionError": ".exceptions",
    "TableMetadata": ".models",
    "ScriptColumn": ".models",
    "ScriptRow": ".models",
    "ScriptTable": ".models",
    "ScriptAuthor": ".service",
    "ScriptGenerator": ".service",
    "generate_script": ".service",
    "generate_script_text": ".service",
    "write_script_file": ".service",
    "fill_from_frame": ".fill",
    "fill_from_sqlalchemy": ".fill",
    "load_table_definition": ".fill",
}

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from .exceptions import (
        CircularReferenceError,
        NoIdentifyingColumnError,
        NoWritableColumnError,
        RelationshipFormatError,
        SchemaMismatchError,
        ScriptGenerationError,
        TableDefinitionError,
    )
    from .fill import fill_from_frame, fill_from_sqlalchemy, load_table_definition
    from .models import ScriptColumn, ScriptRow, ScriptTable, TableMetadata
    from .service import (
        ScriptAuthor,
        ScriptGenerator,
        generate_script,
        generate_script_text,
        write_script_file,
    )
    from .types import UNSET, CompatibilityLevel, ScriptModifier, ScriptType


def __getattr__(name: str) -> Any:
    if name in _LOCATIONS:
        module = importlib.import_module(_LOCATIONS[name], __name__)
        return getattr(module, name)
    raise AttributeError(
        f"module 'data_script_hub.domain.scripting' has no attribute {name!r}"
    )
