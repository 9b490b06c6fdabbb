"""
Custom exceptions for seqalchemy.

This module provides specific exception types for the configuration,
classification, introspection and storage failures that can occur while
installing composite key identity triggers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ErrorContext:
    """Context information captured for error reporting."""

    table_name: str | None = None
    column_name: str | None = None
    operation: str | None = None


class SeqalchemyError(Exception):
    """
    Base exception for all seqalchemy errors.

    Carries the offending table/column so every failure can be traced back
    to the model that caused it.
    """

    def __init__(
        self,
        message: str,
        details: Any | None = None,
        table_name: str | None = None,
        column_name: str | None = None,
        operation: str | None = None,
        error_code: str | None = None,
        suggested_fix: str | None = None,
    ):
        """
        Initialize a SeqalchemyError.

        Args:
            message: The error message
            details: Optional additional details about the error
            table_name: Name of the table where the error occurred
            column_name: Name of the column involved, if any
            operation: Operation being performed when error occurred
            error_code: Categorizable error code (e.g., 'AMBIGUOUS_LOCAL_KEY')
            suggested_fix: Actionable solution
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.table_name = table_name
        self.column_name = column_name
        self.operation = operation
        self.error_code = error_code
        self.suggested_fix = suggested_fix

    @property
    def context(self) -> ErrorContext:
        """Return the error context as a dataclass."""
        return ErrorContext(
            table_name=self.table_name,
            column_name=self.column_name,
            operation=self.operation,
        )

    def format_error(self) -> str:
        """
        Generate a user-friendly formatted error message.

        Returns:
            Formatted error message with context and suggestions
        """
        lines = [f"{self.__class__.__name__}: {self.message}"]

        if self.table_name:
            lines.append(f"  Table: '{self.table_name}'")

        if self.column_name:
            lines.append(f"  Column: '{self.column_name}'")

        if self.operation:
            lines.append(f"  Operation: {self.operation}")

        if self.error_code:
            lines.append(f"  Error Code: {self.error_code}")

        if self.suggested_fix:
            lines.append(f"  Fix: {self.suggested_fix}")

        if self.details:
            if isinstance(self.details, dict):
                detail_strs = [f"    {k}: {v}" for k, v in self.details.items()]
                if detail_strs:
                    lines.append("  Details:")
                    lines.extend(detail_strs)
            else:
                lines.append(f"  Details: {self.details}")

        return "\n".join(lines)

    def __str__(self) -> str:
        """Return formatted error message."""
        return self.format_error()


class ConfigurationError(SeqalchemyError):
    """
    Exception raised for invalid configuration values.

    Examples:
        - Empty trigger prefix or suffix
        - Empty ledger table name
    """

    pass


class ClassificationError(SeqalchemyError):
    """
    Exception raised when a table's primary key cannot be classified.

    Subclasses are per-model configuration errors: the build records them
    and moves on to the next model.
    """

    pass


class AmbiguousLocalKeyError(ClassificationError):
    """
    Raised when a composite primary key does not contain exactly one
    column that is not a foreign key.
    """

    def __init__(self, table_name: str, candidates: list[str], **kwargs):
        if candidates:
            message = (
                f"Composite primary key of '{table_name}' has {len(candidates)} "
                f"non-foreign-key columns {candidates}; exactly one is required"
            )
        else:
            message = (
                f"Every primary key column of '{table_name}' is a foreign key; "
                f"no local identity column is left"
            )
        kwargs.setdefault("error_code", "AMBIGUOUS_LOCAL_KEY")
        kwargs.setdefault(
            "suggested_fix",
            "Make exactly one primary key column a non-foreign-key identity column.",
        )
        super().__init__(message, table_name=table_name, **kwargs)
        self.candidates = list(candidates)


class LocalKeyNotIdentityError(ClassificationError):
    """Raised when the local key column is not server generated."""

    def __init__(self, table_name: str, column_name: str, **kwargs):
        message = (
            f"'[{table_name}].[{column_name}]' is not an identity column. "
            f"You have to set it as an identity column."
        )
        kwargs.setdefault("error_code", "LOCAL_KEY_NOT_IDENTITY")
        kwargs.setdefault(
            "suggested_fix",
            "Declare the column with sqlalchemy.Identity() or autoincrement=True.",
        )
        super().__init__(message, table_name=table_name, column_name=column_name, **kwargs)


class IntrospectionError(SeqalchemyError):
    """
    Exception raised when model metadata cannot be resolved.

    Examples:
        - Unknown model
        - Reflection failure
        - Primary key columns missing from the column list
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "INTROSPECTION_FAILURE")
        super().__init__(message, **kwargs)


class StorageError(SeqalchemyError):
    """
    Exception raised for database errors while creating the sequence
    ledger or installing a trigger.
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("error_code", "STORAGE_FAILURE")
        super().__init__(message, **kwargs)


class BuildError(SeqalchemyError):
    """
    Aggregate of the per-model configuration errors of one build.

    Attributes:
        errors: The individual ClassificationError instances
    """

    def __init__(self, errors: list[ClassificationError]):
        tables = [e.table_name for e in errors]
        super().__init__(
            f"{len(errors)} model(s) could not be configured: {tables}",
            details={e.table_name: e.message for e in errors},
            operation="build",
        )
        self.errors = list(errors)
