"""
Schema introspectors built on SQLAlchemy.

Three views of the same facts are provided: a MetaData collection of
tables, the mapped classes of a declarative base, and the tables reflected
from a live database.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, MetaData, Table, inspect
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError

from seqalchemy.exceptions import IntrospectionError
from seqalchemy.interfaces import ISchemaIntrospector
from seqalchemy.quoting import normalize_schema

logger = logging.getLogger(__name__)


def _is_identity(column) -> bool:
    return column.identity is not None or column.autoincrement is True


class _TableIntrospector(ISchemaIntrospector):
    """Shared implementation for introspectors whose models map to Table objects."""

    def _table(self, model) -> Table:
        raise NotImplementedError

    def table_name(self, model) -> str:
        return self._table(model).name

    def primary_key_columns(self, model) -> list[str]:
        return [c.name for c in self._table(model).primary_key.columns]

    def all_columns(self, model) -> list[str]:
        return [c.name for c in self._table(model).columns]

    def foreign_key_columns(self, model) -> set[str]:
        return {fk.parent.name for fk in self._table(model).foreign_keys}

    def schema_name(self, model) -> str | None:
        return self._table(model).schema

    def is_identity_column(self, model, column_name: str) -> bool:
        table = self._table(model)
        if column_name not in table.columns:
            raise IntrospectionError(
                f"Column '{column_name}' does not exist in '{table.name}'",
                table_name=table.name,
                column_name=column_name,
                operation="is_identity_column",
            )
        column = table.columns[column_name]
        if not _is_identity(column):
            return False
        if column.primary_key and table._autoincrement_column is not column:
            # Only the autoincrement column has its generated value fetched
            logger.warning(
                f"'{table.name}.{column_name}' is an identity but not the autoincrement "
                f"column of its table; declare it with autoincrement=True or inserts "
                f"will not read back the generated key"
            )
        return True


class MetaDataIntrospector(_TableIntrospector):
    """
    Introspect the tables of a SQLAlchemy MetaData.

    Models are the Table objects themselves; a table's key (e.g.
    "dbo.Course Table") is accepted as well.

    Example:
        >>> from sqlalchemy import MetaData
        >>> introspector = MetaDataIntrospector(MetaData())
        >>> introspector.list_models()
        []
    """

    def __init__(self, metadata: MetaData):
        self.metadata = metadata

    def list_models(self) -> list[Table]:
        return list(self.metadata.sorted_tables)

    def _table(self, model) -> Table:
        if isinstance(model, Table) and self.metadata.tables.get(model.key) is model:
            return model
        if isinstance(model, str) and model in self.metadata.tables:
            return self.metadata.tables[model]
        raise IntrospectionError(
            f"Unknown model {model!r}",
            operation="resolve_model",
        )


class DeclarativeIntrospector(_TableIntrospector):
    """
    Introspect the mapped classes of a declarative base or registry.

    Models are the mapped classes, listed in table dependency order so
    parents come before their children.
    """

    def __init__(self, base: Any):
        self.registry = getattr(base, "registry", base)

    def list_models(self) -> list[type]:
        mapped = {}
        for mapper in self.registry.mappers:
            table = mapper.local_table
            if isinstance(table, Table):
                mapped.setdefault(table.key, mapper.class_)
        order = {t.key: i for i, t in enumerate(self.registry.metadata.sorted_tables)}
        return [mapped[key] for key in sorted(mapped, key=lambda k: order.get(k, len(order)))]

    def _table(self, model) -> Table:
        try:
            mapper = inspect(model)
        except NoInspectionAvailable as e:
            raise IntrospectionError(
                f"{model!r} is not a mapped class",
                operation="resolve_model",
            ) from e
        table = mapper.local_table
        if not isinstance(table, Table):
            raise IntrospectionError(
                f"{model!r} is not mapped to a single table",
                operation="resolve_model",
            )
        return table


class ReflectionIntrospector(ISchemaIntrospector):
    """
    Introspect the tables of a live database.

    Models are table names. Reflection results are cached by the underlying
    SQLAlchemy inspector for the lifetime of this object.

    Args:
        engine: SQLAlchemy engine for database connection
        schema: Optional schema name to reflect
    """

    def __init__(self, engine: Engine, schema: str | None = None):
        self.engine = engine
        self.schema = normalize_schema(schema)
        self._inspector = None

    @property
    def inspector(self):
        if self._inspector is None:
            self._inspector = inspect(self.engine)
        return self._inspector

    def _reflect(self, operation: str, table_name: str | None, func, *args):
        try:
            return func(*args, schema=self.schema)
        except SQLAlchemyError as e:
            logger.warning(f"Reflection failed during {operation} for {table_name!r}: {e}")
            raise IntrospectionError(
                f"Could not reflect {operation} of {table_name!r}",
                details=str(e),
                table_name=table_name,
                operation=operation,
            ) from e

    def list_models(self) -> list[str]:
        return sorted(self._reflect("table_names", None, self.inspector.get_table_names))

    def table_name(self, model) -> str:
        return model

    def schema_name(self, model) -> str | None:
        return self.schema

    def primary_key_columns(self, model) -> list[str]:
        pk = self._reflect("primary_key", model, self.inspector.get_pk_constraint, model)
        return list(pk.get("constrained_columns") or [])

    def _columns(self, model) -> list[dict]:
        return self._reflect("columns", model, self.inspector.get_columns, model)

    def all_columns(self, model) -> list[str]:
        return [c["name"] for c in self._columns(model)]

    def foreign_key_columns(self, model) -> set[str]:
        fks = self._reflect("foreign_keys", model, self.inspector.get_foreign_keys, model)
        return {col for fk in fks for col in fk["constrained_columns"]}

    def is_identity_column(self, model, column_name: str) -> bool:
        for column in self._columns(model):
            if column["name"] == column_name:
                return column.get("identity") is not None or column.get("autoincrement") is True
        raise IntrospectionError(
            f"Column '{column_name}' does not exist in '{model}'",
            table_name=model,
            column_name=column_name,
            operation="is_identity_column",
        )
