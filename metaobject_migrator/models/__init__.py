"""Data models for the migration application."""

from .definition import (
    Validation,
    FieldDefinition,
    Definition,
    METAOBJECT_DEFINITION_ID,
    METAOBJECT_REFERENCE_TYPES,
)
from .metaobject import (
    MetaobjectField,
    Metaobject,
)
from .migration import (
    MigrationRun,
    MigrationStep,
    MigrationStatus,
    DefinitionState,
)
from .result import (
    ErrorKind,
    OperationResult,
)
from .config import (
    StoreConfig,
    MigrationConfig,
    ConfigurationError,
)

__all__ = [
    "Validation",
    "FieldDefinition",
    "Definition",
    "METAOBJECT_DEFINITION_ID",
    "METAOBJECT_REFERENCE_TYPES",
    "MetaobjectField",
    "Metaobject",
    "MigrationRun",
    "MigrationStep",
    "MigrationStatus",
    "DefinitionState",
    "ErrorKind",
    "OperationResult",
    "StoreConfig",
    "MigrationConfig",
    "ConfigurationError",
]
