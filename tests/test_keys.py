"""Tests for primary key classification."""

import pytest

from seqalchemy.exceptions import (
    AmbiguousLocalKeyError,
    ClassificationError,
    IntrospectionError,
    LocalKeyNotIdentityError,
)
from seqalchemy.keys import (
    KeyClassification,
    ModelDescriptor,
    classify_keys,
    classify_model,
    normalize_primary_key,
)


def test_normalize_primary_key():
    assert normalize_primary_key('id') == ['id']
    assert normalize_primary_key(('SchoolId', 'Id')) == ['SchoolId', 'Id']


def test_single_column_key_needs_no_emulation():
    """Single column keys already support native identity."""
    assert classify_keys(['Id'], []) is None
    assert classify_keys('Id', ['Id']) is None


def test_two_column_key():
    result = classify_keys(['SchoolId', 'Id'], ['SchoolId'], ['SchoolId', 'Id', 'Name'])

    assert result == KeyClassification('Id', ('SchoolId',), ('Name',))


def test_local_key_first_in_primary_key():
    """Position of the local key inside the key does not matter."""
    result = classify_keys(['Id', 'SchoolId'], {'SchoolId'}, ['Id', 'SchoolId'])

    assert result.local_key == 'Id'
    assert result.partition_keys == ('SchoolId',)
    assert result.data_columns == ()


def test_partition_keys_keep_primary_key_order():
    result = classify_keys(
        ['SchoolId', 'CourseGroupId', 'Id'],
        ['CourseGroupId', 'SchoolId'],
        ['Id', 'Course Name', 'SchoolId', 'CourseGroupId'],
    )

    assert result.local_key == 'Id'
    assert result.partition_keys == ('SchoolId', 'CourseGroupId')
    assert result.data_columns == ('Course Name',)


def test_foreign_keys_outside_primary_key_are_data_columns():
    """Foreign keys outside the primary key are ordinary data columns."""
    result = classify_keys(
        ['SchoolId', 'Id'],
        ['SchoolId', 'StudentId'],
        ['SchoolId', 'Id', 'StudentId', 'Score'],
    )

    assert result.data_columns == ('StudentId', 'Score')


def test_no_local_key_candidate():
    with pytest.raises(AmbiguousLocalKeyError) as exc_info:
        classify_keys(['SchoolId', 'StudentId'], ['SchoolId', 'StudentId'], table_name='Enrolments')

    error = exc_info.value
    assert error.table_name == 'Enrolments'
    assert error.candidates == []
    assert error.error_code == 'AMBIGUOUS_LOCAL_KEY'


def test_several_local_key_candidates():
    with pytest.raises(AmbiguousLocalKeyError, match="2 non-foreign-key columns") as exc_info:
        classify_keys(['Model', 'Constrains'], [], table_name='__Sequences')

    assert exc_info.value.candidates == ['Model', 'Constrains']
    assert "Table: '__Sequences'" in str(exc_info.value)


def test_empty_primary_key():
    with pytest.raises(ClassificationError, match="no primary key"):
        classify_keys([], [], table_name='heap')


def _descriptor(**overrides):
    values = dict(
        model='CourseGroups',
        table_name='CourseGroups',
        primary_key=('SchoolId', 'Course Group Id'),
        columns=('SchoolId', 'Course Group Id', 'Name'),
        foreign_keys=frozenset({'SchoolId'}),
        identity_columns=frozenset({'Course Group Id'}),
    )
    values.update(overrides)
    return ModelDescriptor(**values)


def test_classify_model():
    result = classify_model(_descriptor())

    assert result.local_key == 'Course Group Id'
    assert result.partition_keys == ('SchoolId',)
    assert result.data_columns == ('Name',)


def test_classify_model_local_key_not_identity():
    with pytest.raises(LocalKeyNotIdentityError) as exc_info:
        classify_model(_descriptor(identity_columns=frozenset()))

    error = exc_info.value
    assert error.table_name == 'CourseGroups'
    assert error.column_name == 'Course Group Id'
    assert "'[CourseGroups].[Course Group Id]' is not an identity column" in str(error)


def test_classify_model_single_key_ignores_identity():
    descriptor = _descriptor(
        primary_key=('Id',), columns=('Id', 'Name'), foreign_keys=frozenset(),
        identity_columns=frozenset(),
    )
    assert classify_model(descriptor) is None


def test_descriptor_rejects_unknown_key_columns():
    with pytest.raises(IntrospectionError, match="not columns of"):
        _descriptor(columns=('SchoolId', 'Name'))


def test_descriptor_is_composite():
    assert _descriptor().is_composite
    assert not _descriptor(primary_key=('SchoolId',)).is_composite
