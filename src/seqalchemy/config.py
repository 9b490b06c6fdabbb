"""
Configuration for composite key identity emulation.

All names the engine writes into the database (ledger table, namespace,
trigger names) come from a single IdentityConfig instance.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from seqalchemy.exceptions import ConfigurationError

ENV_PREFIX = "SEQALCHEMY_"

DEFAULT_NAMESPACE = "dbo"
DEFAULT_LEDGER_TABLE = "__Sequences"
DEFAULT_TRIGGER_PREFIX = "SEQA"
DEFAULT_TRIGGER_SUFFIX = "Composite_Key_Identity"
DEFAULT_SIGNATURE_DELIMITER = "|"


@dataclass(frozen=True)
class IdentityConfig:
    """
    Names used by the ledger and the generated triggers.

    Attributes:
        namespace: Database schema holding the ledger and the model tables
            (None for unqualified names)
        ledger_table: Name of the sequence ledger table
        trigger_prefix: First part of every generated trigger name
        trigger_suffix: Last part of every generated trigger name
        signature_delimiter: Separator between partition columns in a
            partition signature
    """

    namespace: str | None = DEFAULT_NAMESPACE
    ledger_table: str = DEFAULT_LEDGER_TABLE
    trigger_prefix: str = DEFAULT_TRIGGER_PREFIX
    trigger_suffix: str = DEFAULT_TRIGGER_SUFFIX
    signature_delimiter: str = DEFAULT_SIGNATURE_DELIMITER

    def __post_init__(self):
        for name in ("ledger_table", "trigger_prefix", "trigger_suffix", "signature_delimiter"):
            if not getattr(self, name):
                raise ConfigurationError(
                    f"'{name}' must not be empty",
                    operation="configure",
                    error_code="INVALID_CONFIG",
                )
        if self.namespace == "":
            # Empty namespace means unqualified names
            object.__setattr__(self, "namespace", None)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> IdentityConfig:
        """
        Build a configuration from SEQALCHEMY_* environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            IdentityConfig instance

        Example:
            >>> IdentityConfig.from_env({'SEQALCHEMY_NAMESPACE': 'app'}).namespace
            'app'
        """
        if environ is None:
            environ = os.environ
        values = {}
        for field in fields(cls):
            key = ENV_PREFIX + field.name.upper()
            if key in environ:
                values[field.name] = environ[key]
        return cls(**values)
