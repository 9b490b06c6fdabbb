"""
Seqalchemy: partition-scoped identity columns for SQLAlchemy on SQL Server

Emulates auto-incrementing local keys for tables with composite primary
keys, numbering child rows 1, 2, 3, ... independently within each parent.
"""

import seqalchemy.triggers as triggers
from seqalchemy._version import version
from seqalchemy.config import IdentityConfig
from seqalchemy.exceptions import (
    AmbiguousLocalKeyError,
    BuildError,
    ClassificationError,
    ConfigurationError,
    ErrorContext,
    IntrospectionError,
    LocalKeyNotIdentityError,
    SeqalchemyError,
    StorageError,
)
from seqalchemy.interfaces import ISchemaIntrospector
from seqalchemy.introspection import (
    DeclarativeIntrospector,
    MetaDataIntrospector,
    ReflectionIntrospector,
)
from seqalchemy.keys import KeyClassification, ModelDescriptor, classify_keys, classify_model
from seqalchemy.ledger import SequenceLedger, SequenceRecord
from seqalchemy.orchestrator import BuildReport, CompositeKeyBuilder
from seqalchemy.triggers import TriggerDefinition, synthesize_trigger, trigger_name

__version__ = version

__all__ = [
    # Core classes
    "CompositeKeyBuilder",
    "BuildReport",
    "IdentityConfig",
    "SequenceLedger",
    "SequenceRecord",
    "TriggerDefinition",
    # Introspection
    "ISchemaIntrospector",
    "MetaDataIntrospector",
    "DeclarativeIntrospector",
    "ReflectionIntrospector",
    "ModelDescriptor",
    # Classification and synthesis
    "KeyClassification",
    "classify_keys",
    "classify_model",
    "synthesize_trigger",
    "trigger_name",
    # Modules
    "triggers",
    # Exceptions
    "SeqalchemyError",
    "ConfigurationError",
    "ClassificationError",
    "AmbiguousLocalKeyError",
    "LocalKeyNotIdentityError",
    "IntrospectionError",
    "StorageError",
    "BuildError",
    "ErrorContext",
    # Version
    "__version__",
]
