"""Shared fixtures for Sigil tests."""

import pytest

from sigil.registry import Registry


@pytest.fixture
def id_registry():
    return Registry(
        {
            "id": "$int*$unique",
            "int": "0",
            "unique": "$string",
            "string": '""',
        }
    )


@pytest.fixture
def entity_registry():
    return Registry(
        {
            "entity": '{"id": $int, "gen": $int}',
            "int": "0",
        }
    )


@pytest.fixture
def cycle_registry():
    return Registry({"a": "$b", "b": "$a"})


@pytest.fixture
def schema_yaml():
    return """\
version: "0.1"
definitions:
  entity: '{"id": $int, "name": $string}'
  int: 1
  flag: true
  nothing: null
  ratio: 0.5
"""
