"""Security scanner — secret and injection-risk patterns."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from qualitygate.scanner.checks.base import FileScanner
from qualitygate.scanner.matcher import match_rules
from qualitygate.scanner.models import Category, Finding, ScanConfig
from qualitygate.scanner.rules import DEFAULT_RULES, Rule


class SecurityScanner(FileScanner):
    """Secrets, injection sinks, unsafe deserialization and transport checks."""

    name = "security"
    category = Category.SECURITY

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        source = DEFAULT_RULES if rules is None else rules
        self.rules = tuple(r for r in source if r.category == Category.SECURITY)

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        return match_rules(content, str(path), self.rules, suffix=path.suffix)
