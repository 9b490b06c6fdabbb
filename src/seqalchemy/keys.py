"""
Primary Key Classification

Splits a composite primary key into the single local identity column and
the partition (foreign key) columns that scope its numbering.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from seqalchemy.exceptions import (
    AmbiguousLocalKeyError,
    ClassificationError,
    IntrospectionError,
    LocalKeyNotIdentityError,
)


def normalize_primary_key(primary_key: str | Iterable[str]) -> list[str]:
    """
    Convert primary key to list format.

    Args:
        primary_key: Single column name (str) or iterable of column names

    Returns:
        List of primary key column names

    Example:
        >>> normalize_primary_key('id')
        ['id']
        >>> normalize_primary_key(('SchoolId', 'Id'))
        ['SchoolId', 'Id']
    """
    return [primary_key] if isinstance(primary_key, str) else list(primary_key)


@dataclass(frozen=True)
class ModelDescriptor:
    """
    Structural facts about one model, as reported by a schema introspector.

    Attributes:
        model: The introspector's model identifier
        table_name: Name of the table the model is stored in
        primary_key: Ordered primary key column names
        columns: All column names, in table order
        foreign_keys: Names of columns that reference another table
        identity_columns: Names of server generated (identity) columns
        schema: Schema of the table, None for the default schema
    """

    model: Any
    table_name: str
    primary_key: tuple[str, ...]
    columns: tuple[str, ...]
    foreign_keys: frozenset[str] = field(default_factory=frozenset)
    identity_columns: frozenset[str] = field(default_factory=frozenset)
    schema: str | None = None

    def __post_init__(self):
        missing = [c for c in self.primary_key if c not in self.columns]
        if missing:
            raise IntrospectionError(
                f"Primary key columns {missing} are not columns of '{self.table_name}'",
                table_name=self.table_name,
                operation="describe",
            )

    @property
    def is_composite(self) -> bool:
        """True when the primary key spans more than one column."""
        return len(self.primary_key) > 1


@dataclass(frozen=True)
class KeyClassification:
    """
    Result of splitting a composite primary key.

    Attributes:
        local_key: The primary key column numbered per partition
        partition_keys: The remaining primary key columns, in key order
        data_columns: Every other column, in table order
    """

    local_key: str
    partition_keys: tuple[str, ...]
    data_columns: tuple[str, ...] = ()


def classify_keys(
    pk_columns: str | Iterable[str],
    fk_columns: Iterable[str],
    all_columns: Iterable[str] = (),
    table_name: str | None = None,
) -> KeyClassification | None:
    """
    Pick the local identity column out of a primary key.

    Args:
        pk_columns: Ordered primary key column names
        fk_columns: Foreign key column names of the table
        all_columns: All column names, used to derive the data columns
        table_name: Table name for error reporting

    Returns:
        KeyClassification, or None when the key has a single column and
        the table can use native identity generation

    Raises:
        ClassificationError: If the primary key is empty
        AmbiguousLocalKeyError: If zero or several key columns are not
            foreign keys

    Example:
        >>> classify_keys(['SchoolId', 'Id'], ['SchoolId'], ['SchoolId', 'Id', 'Name'])
        KeyClassification(local_key='Id', partition_keys=('SchoolId',), data_columns=('Name',))
        >>> classify_keys(['Id'], []) is None
        True
    """
    pk_cols = normalize_primary_key(pk_columns)
    if not pk_cols:
        raise ClassificationError(
            f"Table '{table_name}' has no primary key",
            table_name=table_name,
            operation="classify",
            error_code="NO_PRIMARY_KEY",
        )

    if len(pk_cols) == 1:
        return None

    fk_set = set(fk_columns)
    candidates = [c for c in pk_cols if c not in fk_set]
    if len(candidates) != 1:
        raise AmbiguousLocalKeyError(table_name or "<unknown>", candidates, operation="classify")

    local_key = candidates[0]
    partition_keys = tuple(c for c in pk_cols if c != local_key)
    data_columns = tuple(
        c for c in all_columns if c != local_key and c not in partition_keys
    )
    return KeyClassification(local_key, partition_keys, data_columns)


def classify_model(descriptor: ModelDescriptor) -> KeyClassification | None:
    """
    Classify a described model and check its local key is an identity.

    Raises:
        AmbiguousLocalKeyError: See classify_keys
        LocalKeyNotIdentityError: If the local key is not server generated
    """
    classification = classify_keys(
        descriptor.primary_key,
        descriptor.foreign_keys,
        descriptor.columns,
        table_name=descriptor.table_name,
    )
    if classification is None:
        return None

    if classification.local_key not in descriptor.identity_columns:
        raise LocalKeyNotIdentityError(
            descriptor.table_name, classification.local_key, operation="classify"
        )
    return classification
