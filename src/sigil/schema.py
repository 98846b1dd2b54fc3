"""YAML loading and version checking for external schema files."""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from sigil.errors import SchemaError
from sigil.models import SchemaDocument

SUPPORTED_VERSION = (0, 1)


def _make_yaml() -> YAML:
    """Create a ruamel.yaml safe loader that errors on duplicate keys."""
    yml = YAML(typ="safe")
    yml.allow_duplicate_keys = False
    return yml


def _read_source_text(source: str | Path) -> str:
    """Read schema content from path or treat input as raw YAML text."""
    if isinstance(source, Path):
        try:
            return source.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaError(f"Cannot read file: {e}") from e
    return source


def parse_schema(source: str | Path) -> SchemaDocument:
    """Parse a schema document from a YAML string or file path.

    Raises:
        SchemaError: On YAML syntax errors, shape violations, or version mismatches.
    """
    text = _read_source_text(source)
    try:
        data = _make_yaml().load(text)
    except YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError("Top-level YAML value must be a mapping")

    version = data.get("version")
    if version is None:
        raise SchemaError("Missing required field: version")
    _check_version(str(version))

    try:
        return SchemaDocument(**{**data, "version": str(version)})
    except PydanticValidationError as e:
        raise SchemaError(f"Schema validation failed:\n{e}") from e


def load_schema(source: str | Path) -> dict[str, str]:
    """Load a schema file into ``name -> definition text`` registry entries."""
    return dict(parse_schema(source).definitions)


def _check_version(version: str) -> None:
    """Validate version string compatibility."""
    parts = version.split(".")
    if len(parts) != 2:
        raise SchemaError(f"Invalid version format: {version!r}")

    try:
        major = int(parts[0])
        minor = int(parts[1])
    except ValueError:
        raise SchemaError(f"Invalid version format: {version!r}")

    if (major, minor) > SUPPORTED_VERSION:
        raise SchemaError(
            f"Unsupported version: {version!r} (latest supported is "
            f"{SUPPORTED_VERSION[0]}.{SUPPORTED_VERSION[1]})"
        )
