"""Tests for IdentityConfig."""

import pytest

from seqalchemy import IdentityConfig
from seqalchemy.exceptions import ConfigurationError


def test_defaults():
    config = IdentityConfig()

    assert config.namespace == 'dbo'
    assert config.ledger_table == '__Sequences'
    assert config.trigger_prefix == 'SEQA'
    assert config.trigger_suffix == 'Composite_Key_Identity'
    assert config.signature_delimiter == '|'


def test_config_is_frozen():
    with pytest.raises(AttributeError):
        IdentityConfig().namespace = 'app'


def test_empty_namespace_means_unqualified():
    assert IdentityConfig(namespace='').namespace is None


@pytest.mark.parametrize('field', ['ledger_table', 'trigger_prefix', 'trigger_suffix', 'signature_delimiter'])
def test_empty_names_rejected(field):
    with pytest.raises(ConfigurationError) as exc_info:
        IdentityConfig(**{field: ''})

    assert field in exc_info.value.message
    assert exc_info.value.error_code == 'INVALID_CONFIG'


def test_from_env():
    config = IdentityConfig.from_env({
        'SEQALCHEMY_NAMESPACE': 'app',
        'SEQALCHEMY_LEDGER_TABLE': 'Seq',
        'SEQALCHEMY_TRIGGER_PREFIX': 'EFCFH',
        'UNRELATED': 'x',
    })

    assert config == IdentityConfig(namespace='app', ledger_table='Seq', trigger_prefix='EFCFH')


def test_from_env_empty_mapping_gives_defaults():
    assert IdentityConfig.from_env({}) == IdentityConfig()


def test_from_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv('SEQALCHEMY_SIGNATURE_DELIMITER', ';')

    assert IdentityConfig.from_env().signature_delimiter == ';'


def test_from_env_blank_namespace(monkeypatch):
    monkeypatch.setenv('SEQALCHEMY_NAMESPACE', '')

    assert IdentityConfig.from_env().namespace is None
