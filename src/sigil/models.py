"""Pydantic v2 models for resolution options and external schema files."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sigil.formatter import format_number
from sigil.warning_policy import WarningPolicy

ResolveMode = Literal["flat", "deep"]
BudgetPolicy = Literal["partial", "fail"]

DEFAULT_MAX_PASSES = 100
# Each pass is one level of Python recursion in the resolver.
MAX_PASSES_LIMIT = 128


class ResolveOptions(BaseModel):
    """Per-call resolution settings.

    ``max_passes`` bounds how many nested expansions deep resolution may perform
    along one branch. When it runs out, ``on_budget_exhausted`` decides between
    returning the partial tree (with warning W01) and raising.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: ResolveMode = "deep"
    max_passes: int = Field(default=DEFAULT_MAX_PASSES, ge=1, le=MAX_PASSES_LIMIT)
    on_budget_exhausted: BudgetPolicy = "partial"
    warning_policy: WarningPolicy | None = None


class SchemaDocument(BaseModel):
    """Top-level shape of an external schema YAML file."""

    model_config = ConfigDict(extra="forbid")

    version: str
    definitions: dict[str, str] = Field(default_factory=dict)

    @field_validator("definitions", mode="before")
    @classmethod
    def scalars_to_text(cls, v: object) -> object:
        """Allow bare YAML scalars as definitions by rendering them as expression text."""
        if not isinstance(v, dict):
            return v
        converted: dict[object, object] = {}
        for name, text in v.items():
            if text is None:
                converted[name] = "null"
            elif isinstance(text, bool):
                converted[name] = "true" if text else "false"
            elif isinstance(text, int):
                converted[name] = str(text)
            elif isinstance(text, float):
                if not math.isfinite(text):
                    raise ValueError(f"Definition {name!r} is not a finite number")
                converted[name] = format_number(text)
            else:
                converted[name] = text
        return converted

    @field_validator("definitions")
    @classmethod
    def names_are_identifiers(cls, v: dict[str, str]) -> dict[str, str]:
        for name in v:
            if not (name[:1].isascii() and name[:1].isalpha()) or not all(
                ch.isascii() and (ch.isalnum() or ch == "_") for ch in name
            ):
                raise ValueError(f"Definition name {name!r} is not a valid identifier")
        return v
