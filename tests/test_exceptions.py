"""Tests for the exception hierarchy and error formatting."""

from seqalchemy.exceptions import (
    AmbiguousLocalKeyError,
    BuildError,
    ClassificationError,
    ErrorContext,
    IntrospectionError,
    LocalKeyNotIdentityError,
    SeqalchemyError,
    StorageError,
)


def test_format_error_includes_context():
    error = SeqalchemyError(
        'Something failed',
        details={'rows': 3},
        table_name='CourseGroups',
        column_name='Course Group Id',
        operation='build',
        error_code='X',
        suggested_fix='Try again',
    )

    text = error.format_error()

    assert text.splitlines()[0] == 'SeqalchemyError: Something failed'
    assert "  Table: 'CourseGroups'" in text
    assert "  Column: 'Course Group Id'" in text
    assert '  Operation: build' in text
    assert '  Error Code: X' in text
    assert '  Fix: Try again' in text
    assert '    rows: 3' in text
    assert str(error) == text


def test_format_error_minimal():
    assert str(SeqalchemyError('plain')) == 'SeqalchemyError: plain'


def test_context():
    error = IntrospectionError('bad', table_name='Classes', operation='resolve_model')

    assert error.context == ErrorContext(table_name='Classes', operation='resolve_model')


def test_hierarchy():
    assert issubclass(AmbiguousLocalKeyError, ClassificationError)
    assert issubclass(LocalKeyNotIdentityError, ClassificationError)
    for cls in (ClassificationError, IntrospectionError, StorageError, BuildError):
        assert issubclass(cls, SeqalchemyError)


def test_default_error_codes():
    assert IntrospectionError('x').error_code == 'INTROSPECTION_FAILURE'
    assert StorageError('x').error_code == 'STORAGE_FAILURE'
    assert StorageError('x', error_code='OTHER').error_code == 'OTHER'


def test_local_key_not_identity_message():
    error = LocalKeyNotIdentityError('Students', 'StudentId')

    assert error.message == (
        "'[Students].[StudentId]' is not an identity column. "
        "You have to set it as an identity column."
    )
    assert 'Identity()' in error.suggested_fix


def test_build_error_collects_models():
    errors = [
        AmbiguousLocalKeyError('Enrolments', []),
        LocalKeyNotIdentityError('Scores', 'Id'),
    ]

    error = BuildError(errors)

    assert error.errors == errors
    assert "2 model(s) could not be configured: ['Enrolments', 'Scores']" in str(error)
    assert "    Scores: '[Scores].[Id]' is not an identity column" in str(error)
