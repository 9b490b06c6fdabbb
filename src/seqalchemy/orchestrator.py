"""
Composite key orchestration.

CompositeKeyBuilder walks every model of a schema introspector, classifies
its primary key and installs the identity emulation trigger on each
composite keyed table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from seqalchemy.config import IdentityConfig
from seqalchemy.exceptions import BuildError, ClassificationError, IntrospectionError, StorageError
from seqalchemy.interfaces import ISchemaIntrospector
from seqalchemy.keys import ModelDescriptor, classify_model
from seqalchemy.ledger import SequenceLedger
from seqalchemy.triggers import TriggerDefinition, define_trigger, install_trigger

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """
    Outcome of one build run.

    Attributes:
        installed: Trigger definitions installed, in model order
        skipped: Tables left alone, mapped to the reason (single column key
            or no primary key)
        errors: Per-model configuration errors
        ledger_created: Whether the run created the sequence ledger
    """

    installed: list[TriggerDefinition] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    errors: list[ClassificationError] = field(default_factory=list)
    ledger_created: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise a BuildError if any model failed to classify."""
        if self.errors:
            raise BuildError(self.errors)

    def rows(self) -> list[tuple[str, str, str]]:
        """(table, status, detail) rows for display."""
        rows = [(d.table_name, "installed", d.trigger_name) for d in self.installed]
        rows.extend((name, "skipped", reason) for name, reason in self.skipped.items())
        rows.extend((e.table_name or "", "error", e.message) for e in self.errors)
        return rows


class CompositeKeyBuilder:
    """
    Install partition-scoped identity triggers for every composite keyed table.

    The builder keeps no state between runs: each build re-derives
    everything from the introspector, so it can be re-run at any time.

    Attributes:
        engine: SQLAlchemy engine for database connection (may be None
            when only plan() is used)
        introspector: Source of model structure
        config: Names for the ledger and triggers
        ledger: The sequence ledger

    Example:
        >>> from sqlalchemy import create_engine
        >>> engine = create_engine('mssql+pyodbc://...')  # doctest: +SKIP
        >>> builder = CompositeKeyBuilder(engine, MetaDataIntrospector(metadata))  # doctest: +SKIP
        >>> builder.build().raise_for_errors()  # doctest: +SKIP
    """

    def __init__(
        self,
        engine: Engine | None,
        introspector: ISchemaIntrospector,
        config: IdentityConfig | None = None,
    ):
        self.engine = engine
        self.introspector = introspector
        self.config = config or IdentityConfig()
        self.ledger = SequenceLedger(self.config)

    def _describe(self, model) -> ModelDescriptor:
        descriptor = self.introspector.describe(model)
        if descriptor.schema and descriptor.schema != self.config.namespace:
            raise IntrospectionError(
                f"'{descriptor.table_name}' is in schema '{descriptor.schema}', "
                f"but triggers and the ledger use namespace {self.config.namespace!r}",
                table_name=descriptor.table_name,
                operation="describe",
                error_code="SCHEMA_MISMATCH",
                suggested_fix="Set SEQALCHEMY_NAMESPACE to the schema of the model tables.",
            )
        return descriptor

    def _describe_all(self) -> list[ModelDescriptor]:
        descriptors = []
        for model in self.introspector.list_models():
            descriptor = self._describe(model)
            if descriptor.table_name == self.config.ledger_table:
                continue
            descriptors.append(descriptor)
        return descriptors

    @staticmethod
    def _skip_reason(descriptor: ModelDescriptor) -> str | None:
        if not descriptor.primary_key:
            return "no primary key"
        if not descriptor.is_composite:
            return "single column key"
        return None

    def _definition(self, descriptor: ModelDescriptor) -> TriggerDefinition | None:
        classification = classify_model(descriptor)
        if classification is None:
            return None
        return define_trigger(descriptor.table_name, classification, self.config)

    def _install(self, definition: TriggerDefinition) -> None:
        try:
            with self.engine.begin() as connection:
                install_trigger(connection, definition)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Could not install trigger {definition.trigger_name}",
                details=str(e),
                table_name=definition.table_name,
                operation="install_trigger",
            ) from e
        logger.info(f"Installed trigger {definition.trigger_name} on '{definition.table_name}'")

    def ensure_ledger(self) -> bool:
        """Create the sequence ledger if needed; True if it was created."""
        try:
            with self.engine.begin() as connection:
                return self.ledger.ensure_storage_exists(connection)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Could not open a transaction to create {self.ledger.reference}",
                details=str(e),
                table_name=self.config.ledger_table,
                operation="ensure_storage_exists",
            ) from e

    def plan(self) -> tuple[list[TriggerDefinition], list[ClassificationError]]:
        """
        Everything build() would install, without touching the database.

        Returns:
            Tuple of (trigger definitions, per-model configuration errors)
        """
        definitions = []
        errors = []
        for descriptor in self._describe_all():
            if self._skip_reason(descriptor):
                continue
            try:
                definitions.append(self._definition(descriptor))
            except ClassificationError as e:
                errors.append(e)
        return definitions, errors

    def build_model(self, model: Any) -> str | None:
        """
        Install the trigger for a single model.

        Args:
            model: Model identifier understood by the introspector

        Returns:
            Installed trigger name, or None for single column keys

        Raises:
            ClassificationError: If the model's key cannot be emulated,
                including a table without primary key
            StorageError: If the trigger cannot be installed
        """
        definition = self._definition(self._describe(model))
        if definition is None:
            return None
        self._install(definition)
        return definition.trigger_name

    def build(self) -> BuildReport:
        """
        Create the ledger and (re)install every trigger.

        Configuration errors of individual models are logged and collected in
        the report; the remaining models are still processed. Storage and
        introspection errors abort the run.

        Returns:
            BuildReport describing the run
        """
        report = BuildReport()
        report.ledger_created = self.ensure_ledger()

        for descriptor in self._describe_all():
            reason = self._skip_reason(descriptor)
            if reason:
                logger.debug(f"No trigger needed for '{descriptor.table_name}': {reason}")
                report.skipped[descriptor.table_name] = reason
                continue

            try:
                definition = self._definition(descriptor)
            except ClassificationError as e:
                logger.error(f"Skipping '{descriptor.table_name}': {e.message}")
                report.errors.append(e)
                continue

            self._install(definition)
            report.installed.append(definition)

        logger.info(
            f"Build finished: {len(report.installed)} installed, "
            f"{len(report.skipped)} skipped, {len(report.errors)} error(s)"
        )
        return report
