"""Concrete scanners, in registration order."""

from __future__ import annotations

from collections.abc import Iterable

from qualitygate.scanner.checks.base import FileScanner, Scanner
from qualitygate.scanner.checks.complexity import ComplexityScanner
from qualitygate.scanner.checks.coverage import CoverageScanner
from qualitygate.scanner.checks.security import SecurityScanner
from qualitygate.scanner.checks.style import StyleScanner
from qualitygate.scanner.rules import Rule

REGISTRATION_ORDER: tuple[str, ...] = ("style", "security", "complexity", "coverage")


def default_scanners(rules: Iterable[Rule] | None = None) -> list[Scanner]:
    """Build the standard scanner set, sharing one rule table."""
    rules = list(rules) if rules is not None else None
    return [
        StyleScanner(rules),
        SecurityScanner(rules),
        ComplexityScanner(),
        CoverageScanner(),
    ]


__all__ = [
    "REGISTRATION_ORDER",
    "ComplexityScanner",
    "CoverageScanner",
    "FileScanner",
    "Scanner",
    "SecurityScanner",
    "StyleScanner",
    "default_scanners",
]
