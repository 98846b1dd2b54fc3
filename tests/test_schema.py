"""Tests for external schema loading."""

import pytest

from sigil.errors import SchemaError
from sigil.schema import load_schema, parse_schema


class TestParseSchema:
    def test_parse_valid_string(self, schema_yaml):
        doc = parse_schema(schema_yaml)
        assert doc.version == "0.1"
        assert doc.definitions["entity"] == '{"id": $int, "name": $string}'

    def test_scalars_become_expression_text(self, schema_yaml):
        defs = load_schema(schema_yaml)
        assert defs["int"] == "1"
        assert defs["flag"] == "true"
        assert defs["nothing"] == "null"
        assert defs["ratio"] == "0.5"

    def test_parse_from_file(self, schema_yaml, tmp_path):
        f = tmp_path / "schema.yaml"
        f.write_text(schema_yaml)
        assert "entity" in load_schema(f)

    def test_unquoted_version(self):
        assert parse_schema("version: 0.1\n").version == "0.1"

    def test_empty_definitions(self):
        assert load_schema('version: "0.1"\n') == {}

    def test_reject_invalid_yaml(self):
        with pytest.raises(SchemaError, match="Invalid YAML"):
            parse_schema("{{{{not valid yaml")

    def test_reject_duplicate_keys(self):
        with pytest.raises(SchemaError, match="Invalid YAML"):
            parse_schema('version: "0.1"\ndefinitions:\n  a: "1"\n  a: "2"\n')

    def test_reject_non_dict(self):
        with pytest.raises(SchemaError, match="mapping"):
            parse_schema("- item1\n- item2")

    def test_missing_version(self):
        with pytest.raises(SchemaError, match="version"):
            parse_schema("definitions: {}\n")

    def test_unsupported_version(self):
        with pytest.raises(SchemaError, match="Unsupported version"):
            parse_schema('version: "1.0"\n')

    def test_invalid_version_format(self):
        with pytest.raises(SchemaError, match="Invalid version"):
            parse_schema('version: "abc"\n')

    def test_unknown_top_level_field(self):
        with pytest.raises(SchemaError, match="Schema validation failed"):
            parse_schema('version: "0.1"\nextras: 1\n')

    def test_bad_definition_name(self):
        with pytest.raises(SchemaError, match="not a valid identifier"):
            parse_schema('version: "0.1"\ndefinitions:\n  "1abc": "0"\n')

    def test_file_not_found(self, tmp_path):
        with pytest.raises(SchemaError, match="Cannot read"):
            parse_schema(tmp_path / "nonexistent.yaml")
