"""
Sequence ledger storage.

The ledger records, per (model, partition signature), the last local key
value handed out by a generated trigger. Triggers read and write it at
insert time; from Python the ledger is only created and inspected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from sqlalchemy import (
    BigInteger,
    Column,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Unicode,
    inspect,
    select,
)
from sqlalchemy.exc import SQLAlchemyError

from seqalchemy.config import IdentityConfig
from seqalchemy.exceptions import StorageError
from seqalchemy.quoting import qualify, quote_identifier

logger = logging.getLogger(__name__)

MODEL_LENGTH = 128
SIGNATURE_LENGTH = 300


@dataclass(frozen=True)
class SequenceRecord:
    """One ledger row."""

    model: str
    signature: str
    last_id: int | None


def _render_value(value: Any) -> str:
    # Matches CAST(<int or string column> AS nvarchar(max))
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


class SequenceLedger:
    """
    The persistent (model, partition signature) -> last id table.

    Attributes:
        config: Names of the ledger table and its namespace
        table: SQLAlchemy Table describing the ledger

    Example:
        >>> ledger = SequenceLedger(IdentityConfig(namespace=None))
        >>> ledger.partition_signature({'SchoolId': 2})
        '[SchoolId]=2'
    """

    def __init__(self, config: IdentityConfig | None = None):
        self.config = config or IdentityConfig()
        self.metadata = MetaData()
        self.table = Table(
            self.config.ledger_table,
            self.metadata,
            Column("Model", Unicode(MODEL_LENGTH), nullable=False),
            Column("Constrains", Unicode(SIGNATURE_LENGTH), nullable=False),
            Column("LastId", BigInteger, nullable=True),
            PrimaryKeyConstraint(
                "Model", "Constrains", name=f"PK_{self.config.ledger_table.strip('_')}"
            ),
            schema=self.config.namespace,
        )

    @property
    def reference(self) -> str:
        """Quoted, qualified reference to the ledger table."""
        return qualify(self.config.ledger_table, self.config.namespace)

    def ensure_storage_exists(self, connection) -> bool:
        """
        Create the ledger table if it does not exist yet.

        Never drops or truncates an existing ledger.

        Args:
            connection: SQLAlchemy connection (or engine)

        Returns:
            True if the table was created by this call

        Raises:
            StorageError: If the database rejects the check or the DDL
        """
        try:
            exists = inspect(connection).has_table(
                self.config.ledger_table, schema=self.config.namespace
            )
            if not exists:
                self.table.create(connection, checkfirst=True)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Could not create sequence ledger {self.reference}",
                details=str(e),
                table_name=self.config.ledger_table,
                operation="ensure_storage_exists",
            ) from e

        if exists:
            logger.debug(f"Sequence ledger {self.reference} already exists")
        else:
            logger.info(f"Created sequence ledger {self.reference}")
        return not exists

    def model_name(self, table_name: str) -> str:
        """
        Ledger Model value for a table.

        Example:
            >>> SequenceLedger().model_name('Course Table')
            '[dbo].[Course Table]'
        """
        return qualify(table_name, self.config.namespace)

    def partition_signature(self, values: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> str:
        """
        Render the signature a trigger computes for the given partition values.

        Values are rendered the way SQL Server casts integer and string
        columns to nvarchar; pass them in partition key order.

        Args:
            values: Mapping (or pairs) of partition column name to value

        Returns:
            Signature such as "[SchoolId]=1|[CourseGroupId]=3"
        """
        pairs = values.items() if isinstance(values, Mapping) else values
        return self.config.signature_delimiter.join(
            f"{quote_identifier(column)}={_render_value(value)}" for column, value in pairs
        )

    def _select(self, table_name: str | None = None):
        stmt = select(
            self.table.c.Model, self.table.c.Constrains, self.table.c.LastId
        ).order_by(self.table.c.Model, self.table.c.Constrains)
        if table_name is not None:
            stmt = stmt.where(self.table.c.Model == self.model_name(table_name))
        return stmt

    def last_id(self, connection, table_name: str, partition_values) -> int | None:
        """
        Last id recorded for one partition of a table.

        Returns:
            The stored value, or None when the partition has no ledger row
        """
        stmt = select(self.table.c.LastId).where(
            self.table.c.Model == self.model_name(table_name),
            self.table.c.Constrains == self.partition_signature(partition_values),
        )
        return connection.execute(stmt).scalar_one_or_none()

    def records(self, connection, table_name: str | None = None) -> list[SequenceRecord]:
        """All ledger rows, optionally restricted to one table."""
        result = connection.execute(self._select(table_name))
        return [SequenceRecord(row.Model, row.Constrains, row.LastId) for row in result]

    def to_frame(self, connection, table_name: str | None = None) -> pd.DataFrame:
        """Ledger rows as a DataFrame with Model, Constrains and LastId columns."""
        return pd.read_sql(self._select(table_name), connection)
