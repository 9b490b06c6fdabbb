"""
Seqalchemy command-line interface.

Installs composite key identity triggers, prints the scripts that would be
installed, and shows the sequence ledger.
"""

import argparse
import importlib
import logging
import sys
from dataclasses import replace

from tabulate import tabulate

from seqalchemy import __version__
from seqalchemy.config import IdentityConfig
from seqalchemy.exceptions import SeqalchemyError


def main(argv=None):
    """
    Main entry point for seqalchemy CLI.

    Args:
        argv: List of command-line arguments (defaults to sys.argv)

    Returns:
        int: Exit code (0 for success, 1 for model errors, 2 for fatal errors)
    """
    if argv is None:
        argv = sys.argv

    parser = argparse.ArgumentParser(
        prog='seqalchemy',
        description='Seqalchemy - partition-scoped identity columns for composite keys',
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'seqalchemy {__version__}'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log progress to stderr'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser(
        'info',
        help='Display information about seqalchemy installation'
    )

    build_parser = subparsers.add_parser(
        'build',
        help='Create the sequence ledger and install all triggers'
    )
    build_parser.add_argument('url', help='Database URL (e.g., mssql+pyodbc://...)')
    _add_model_options(build_parser)

    script_parser = subparsers.add_parser(
        'script',
        help='Print the trigger scripts without installing them'
    )
    script_parser.add_argument('url', nargs='?', help='Database URL, required without --metadata')
    _add_model_options(script_parser)

    ledger_parser = subparsers.add_parser(
        'ledger',
        help='Show the sequence ledger'
    )
    ledger_parser.add_argument('url', help='Database URL')
    ledger_parser.add_argument('--table', help='Only show one table')
    ledger_parser.add_argument('--namespace', help='Override SEQALCHEMY_NAMESPACE')

    args = parser.parse_args(argv[1:] if len(argv) > 1 else ['--help'])

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'info':
            return info_command()
        elif args.command == 'build':
            return build_command(args)
        elif args.command == 'script':
            return script_command(args)
        elif args.command == 'ledger':
            return ledger_command(args)
    except SeqalchemyError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    return 0


def _add_model_options(subparser):
    subparser.add_argument(
        '--metadata',
        help='Models to use instead of reflection, as module:attribute '
             '(a MetaData, declarative base or registry)'
    )
    subparser.add_argument('--schema', help='Schema to reflect')
    subparser.add_argument('--namespace', help='Override SEQALCHEMY_NAMESPACE')


def _config(args) -> IdentityConfig:
    config = IdentityConfig.from_env()
    if args.namespace is not None:
        config = replace(config, namespace=args.namespace)
    return config


def load_introspector(metadata_path=None, engine=None, schema=None):
    """
    Build an introspector from a "module:attribute" path or by reflection.

    Args:
        metadata_path: Import path of a MetaData, declarative base or registry
        engine: Engine to reflect when no path is given
        schema: Schema to reflect

    Returns:
        ISchemaIntrospector instance
    """
    from sqlalchemy import MetaData

    from seqalchemy.introspection import (
        DeclarativeIntrospector,
        MetaDataIntrospector,
        ReflectionIntrospector,
    )

    if metadata_path is None:
        return ReflectionIntrospector(engine, schema=schema)

    module_name, _, attribute = metadata_path.partition(':')
    if not attribute:
        raise SeqalchemyError(
            f"Expected module:attribute, got '{metadata_path}'",
            operation="load_models",
        )
    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise SeqalchemyError(
            f"Could not load models from '{metadata_path}'",
            details=str(e),
            operation="load_models",
        ) from e
    if isinstance(target, MetaData):
        return MetaDataIntrospector(target)
    return DeclarativeIntrospector(target)


def create_engine_from_url(url):
    """
    Create an engine, reporting bad URLs and missing drivers as SeqalchemyError.

    Args:
        url: Database URL

    Returns:
        SQLAlchemy Engine
    """
    from sqlalchemy import create_engine
    from sqlalchemy.exc import SQLAlchemyError

    try:
        return create_engine(url)
    except (SQLAlchemyError, ImportError) as e:
        raise SeqalchemyError(
            "Could not create a database engine",
            details=str(e),
            operation="connect",
        ) from e


def info_command():
    """Display information about seqalchemy."""
    import pandas as pd
    import sqlalchemy

    config = IdentityConfig.from_env()
    print(f"Seqalchemy Version: {__version__}")
    print(f"Python Version: {sys.version.split()[0]}")
    print(f"SQLAlchemy Version: {sqlalchemy.__version__}")
    print(f"Pandas Version: {pd.__version__}")
    print("\nConfiguration:")
    print(tabulate(
        [
            ('namespace', config.namespace),
            ('ledger_table', config.ledger_table),
            ('trigger_prefix', config.trigger_prefix),
            ('trigger_suffix', config.trigger_suffix),
            ('signature_delimiter', config.signature_delimiter),
        ],
        headers=['setting', 'value'],
    ))

    return 0


def build_command(args):
    """
    Install triggers on the database at args.url.

    Returns:
        int: 0 if every model was handled, 1 if some models were misconfigured
    """
    from sqlalchemy.exc import SQLAlchemyError

    from seqalchemy.orchestrator import CompositeKeyBuilder

    engine = create_engine_from_url(args.url)
    try:
        introspector = load_introspector(args.metadata, engine, args.schema)
        report = CompositeKeyBuilder(engine, introspector, _config(args)).build()
    except SQLAlchemyError as e:
        print(f"✗ Database error: {e}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if report.ledger_created:
        print("✓ Created sequence ledger")
    rows = report.rows()
    if rows:
        print(tabulate(rows, headers=['table', 'status', 'detail']))
    else:
        print("No tables found")
    return 0 if report.ok else 1


def script_command(args):
    """
    Print the scripts build would install.

    Returns:
        int: 0 if every model was handled, 1 if some models were misconfigured
    """
    from seqalchemy.orchestrator import CompositeKeyBuilder

    if args.url is None and args.metadata is None:
        print("✗ Either a database URL or --metadata is required", file=sys.stderr)
        return 2

    engine = create_engine_from_url(args.url) if args.url else None
    try:
        introspector = load_introspector(args.metadata, engine, args.schema)
        definitions, errors = CompositeKeyBuilder(engine, introspector, _config(args)).plan()
    finally:
        if engine is not None:
            engine.dispose()

    for definition in definitions:
        print(f"-- {definition.table_name}")
        print(definition.script)
    for error in errors:
        print(f"✗ {error}", file=sys.stderr)
    return 0 if not errors else 1


def ledger_command(args):
    """Print the sequence ledger rows."""
    from sqlalchemy.exc import SQLAlchemyError

    from seqalchemy.ledger import SequenceLedger

    engine = create_engine_from_url(args.url)
    ledger = SequenceLedger(_config(args))
    try:
        with engine.connect() as connection:
            frame = ledger.to_frame(connection, args.table)
    except SQLAlchemyError as e:
        print(f"✗ Could not read {ledger.reference}: {e}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if frame.empty:
        print("Ledger is empty")
    else:
        print(tabulate(frame, headers='keys', showindex=False))
    return 0
