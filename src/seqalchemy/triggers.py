"""
T-SQL trigger synthesis.

Builds the INSTEAD OF INSERT trigger that numbers the local key of a
composite keyed table per partition, reconciling the sequence ledger with
the highest key already stored in the table.

Synthesis is pure string construction: the same inputs always produce the
same script, so reinstalling an unchanged model is a no-op in effect.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from seqalchemy.config import IdentityConfig
from seqalchemy.keys import KeyClassification
from seqalchemy.quoting import column_list, qualify, quote_identifier, quote_literal

logger = logging.getLogger(__name__)

ASSIGNED_TABLE = "#seqalchemy_assigned"
CURSOR_NAME = "seqalchemy_partitions"

DROP_TEMPLATE = """\
IF OBJECT_ID({trigger_literal}, N'TR') IS NOT NULL
    DROP TRIGGER {trigger};
"""

CREATE_TEMPLATE = """\
-- Assigns {local} per partition of {table} before rows are stored.
-- Generated by seqalchemy; manual changes are replaced on the next build.
CREATE TRIGGER {trigger}
ON {table}
INSTEAD OF INSERT
AS
BEGIN
    SET NOCOUNT ON;

    DECLARE @model nvarchar(128) = {model};
    DECLARE @constrains nvarchar(max);
    DECLARE @last_id bigint;
    DECLARE @seq_id bigint;
    DECLARE @seq_found bit;
    DECLARE @row_count bigint;

    SELECT TOP (0) t.{local} + 0 AS {local}, {partition_t}
    INTO {assigned}
    FROM {table} AS t;

    -- Signature order fixes the order ledger rows are locked in
    DECLARE {cursor} CURSOR LOCAL FAST_FORWARD FOR
        SELECT DISTINCT {signature_i} FROM inserted AS i ORDER BY 1;

    OPEN {cursor};
    FETCH NEXT FROM {cursor} INTO @constrains;

    WHILE @@FETCH_STATUS = 0
    BEGIN
        -- Floor: highest {local} already stored for this partition
        SET @last_id = ISNULL((
            SELECT MAX(t.{local})
            FROM {table} AS t
            WHERE EXISTS (
                SELECT 1 FROM inserted AS i
                WHERE {signature_i} = @constrains
                  AND {partition_join}
            )
        ), 0);

        -- Ledger value, locked until the end of the transaction
        SET @seq_id = 0;
        SET @seq_found = 0;
        SELECT @seq_id = ISNULL([LastId], 0), @seq_found = 1
        FROM {ledger} WITH (UPDLOCK, HOLDLOCK)
        WHERE [Model] = @model AND [Constrains] = @constrains;

        IF (@seq_id > @last_id)
            SET @last_id = @seq_id;

        SELECT @row_count = COUNT(*) FROM inserted AS i WHERE {signature_i} = @constrains;

        IF (@seq_found = 1)
            UPDATE {ledger} SET [LastId] = @last_id + @row_count
            WHERE [Model] = @model AND [Constrains] = @constrains;
        ELSE
            INSERT INTO {ledger} ([Model], [Constrains], [LastId])
            VALUES (@model, @constrains, @last_id + @row_count);

        SET IDENTITY_INSERT {table} ON;

        INSERT INTO {table} ({insert_columns})
        OUTPUT inserted.{local}, {partition_inserted} INTO {assigned} ({result_columns})
        SELECT @last_id + ROW_NUMBER() OVER (ORDER BY (SELECT NULL)), {select_columns}
        FROM inserted AS i
        WHERE {signature_i} = @constrains;

        SET IDENTITY_INSERT {table} OFF;

        FETCH NEXT FROM {cursor} INTO @constrains;
    END

    CLOSE {cursor};
    DEALLOCATE {cursor};

    SELECT {result_columns} FROM {assigned};
END
"""

EXEC_TEMPLATE = "EXEC sp_executesql {body};\n"


@dataclass(frozen=True)
class TriggerDefinition:
    """
    A synthesized trigger, ready to install.

    Attributes:
        table_name: Table the trigger is attached to
        trigger_name: Unqualified trigger name
        script: Drop-then-create script
    """

    table_name: str
    trigger_name: str
    script: str


def trigger_name(table_name: str, config: IdentityConfig | None = None) -> str:
    """
    Deterministic trigger name for a table.

    Example:
        >>> trigger_name('Course Table')
        'SEQA_Course_Table_Composite_Key_Identity'
    """
    config = config or IdentityConfig()
    return f"{config.trigger_prefix}_{table_name.replace(' ', '_')}_{config.trigger_suffix}"


def signature_expression(
    partition_keys: Sequence[str], alias: str, config: IdentityConfig | None = None
) -> str:
    """
    T-SQL expression computing the partition signature of a row.

    Example:
        >>> signature_expression(['SchoolId'], 'i')
        "N'[SchoolId]=' + CAST(i.[SchoolId] AS nvarchar(max))"
    """
    config = config or IdentityConfig()
    separator = f" + {quote_literal(config.signature_delimiter)} + "
    return separator.join(
        f"{quote_literal(quote_identifier(column) + '=')} + "
        f"CAST({alias}.{quote_identifier(column)} AS nvarchar(max))"
        for column in partition_keys
    )


def drop_trigger_sql(table_name: str, config: IdentityConfig | None = None) -> str:
    """Statement dropping the table's trigger if it is installed."""
    config = config or IdentityConfig()
    qualified = qualify(trigger_name(table_name, config), config.namespace)
    return DROP_TEMPLATE.format(trigger_literal=quote_literal(qualified), trigger=qualified)


def create_trigger_body(
    table_name: str,
    local_key: str,
    partition_keys: Sequence[str],
    data_columns: Sequence[str],
    config: IdentityConfig | None = None,
) -> str:
    """
    The CREATE TRIGGER statement for a composite keyed table.

    Args:
        table_name: Table to attach the trigger to
        local_key: Column numbered per partition
        partition_keys: Foreign key columns of the primary key, in key order
        data_columns: Remaining columns, passed through unchanged
        config: Naming configuration

    Returns:
        CREATE TRIGGER statement text
    """
    config = config or IdentityConfig()
    if not partition_keys:
        raise ValueError(f"Table '{table_name}' has no partition keys")

    table = qualify(table_name, config.namespace)
    local = quote_identifier(local_key)
    passthrough = list(partition_keys) + list(data_columns)

    return CREATE_TEMPLATE.format(
        trigger=qualify(trigger_name(table_name, config), config.namespace),
        table=table,
        ledger=qualify(config.ledger_table, config.namespace),
        model=quote_literal(table),
        local=local,
        assigned=ASSIGNED_TABLE,
        cursor=CURSOR_NAME,
        signature_i=signature_expression(partition_keys, "i", config),
        partition_t=column_list(partition_keys, alias="t"),
        partition_join=" AND ".join(
            f"t.{quote_identifier(c)} = i.{quote_identifier(c)}" for c in partition_keys
        ),
        partition_inserted=column_list(partition_keys, alias="inserted"),
        result_columns=column_list([local_key, *partition_keys]),
        insert_columns=column_list([local_key, *passthrough]),
        select_columns=column_list(passthrough, alias="i"),
    )


def synthesize_trigger(
    table_name: str,
    local_key: str,
    partition_keys: Sequence[str],
    data_columns: Sequence[str],
    config: IdentityConfig | None = None,
) -> str:
    """
    Full installation script: drop any previous trigger, then create it.

    CREATE TRIGGER has to start its own batch, so the body is run through
    sp_executesql and the whole script executes as one batch.

    Example:
        >>> script = synthesize_trigger('CourseGroups', 'Id', ['SchoolId'], ['Name'])
        >>> script.startswith("IF OBJECT_ID(N'[dbo].[SEQA_CourseGroups_Composite_Key_Identity]'")
        True
    """
    config = config or IdentityConfig()
    body = create_trigger_body(table_name, local_key, partition_keys, data_columns, config)
    return drop_trigger_sql(table_name, config) + EXEC_TEMPLATE.format(body=quote_literal(body))


def define_trigger(
    table_name: str, classification: KeyClassification, config: IdentityConfig | None = None
) -> TriggerDefinition:
    """Synthesize the trigger for a classified table."""
    config = config or IdentityConfig()
    script = synthesize_trigger(
        table_name,
        classification.local_key,
        classification.partition_keys,
        classification.data_columns,
        config,
    )
    return TriggerDefinition(table_name, trigger_name(table_name, config), script)


def install_trigger(connection, definition: TriggerDefinition) -> None:
    """
    Execute a trigger script on a SQLAlchemy connection.

    The script is passed to the driver as-is; it contains no bind parameters.
    """
    logger.debug(f"Installing trigger {definition.trigger_name}:\n{definition.script}")
    connection.exec_driver_sql(definition.script)
