"""Coded diagnostics emitted while resolving expressions.

Every code has a fixed message template; the resolver passes only the values
the template needs. ``WarningPolicy`` (built from ``--warn-as-error`` and
``--suppress-warning`` on the command line) drops a code or raises it as an
``EscalatedWarning`` instead.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from sigil.errors import EscalatedWarning

WARNING_MESSAGES: dict[str, str] = {
    # Deep resolution hit max_passes; the result still holds symbols.
    "W01": "Pass budget of {max_passes} exhausted; returning partial result {result}",
    # A name re-entered its own expansion and was kept symbolic.
    "W02": "Reference cycle through {name!r}; left unexpanded",
}

KNOWN_CODES: frozenset[str] = frozenset(WARNING_MESSAGES)


class SigilWarning(UserWarning):
    """A resolution diagnostic tagged with one of ``KNOWN_CODES``."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Codes to raise as errors and codes to drop. Suppression wins over escalation."""

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()


def emit_warning(code: str, *, policy: WarningPolicy | None = None, **context: object) -> None:
    """Render the message for ``code`` from ``context`` and report it under ``policy``.

    Raises:
        EscalatedWarning: ``code`` is listed in ``policy.warn_as_error``.
        ValueError: ``code`` is not a known warning code.
    """
    template = WARNING_MESSAGES.get(code)
    if template is None:
        raise ValueError(f"Unknown warning code: {code!r}")
    if policy is not None and code in policy.suppress:
        return
    message = template.format(**context)
    if policy is not None and code in policy.warn_as_error:
        raise EscalatedWarning(code, message)
    warnings.warn(SigilWarning(code, message), stacklevel=3)


def parse_code_list(raw: str) -> frozenset[str]:
    """Split ``raw`` on commas into known codes; blank entries are skipped.

    Raises ``ValueError`` naming the first unknown code.
    """
    codes = frozenset(token.strip() for token in raw.split(",") if token.strip())
    unknown = sorted(codes - KNOWN_CODES)
    if unknown:
        raise ValueError(f"Unknown warning code: {unknown[0]!r} (known: {sorted(KNOWN_CODES)})")
    return codes
