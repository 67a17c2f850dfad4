"""Style scanner — rule table plus line length."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from qualitygate.scanner.checks.base import FileScanner
from qualitygate.scanner.matcher import match_rules
from qualitygate.scanner.models import Category, Finding, ScanConfig
from qualitygate.scanner.rules import DEFAULT_RULES, Rule, builtin_finding


class StyleScanner(FileScanner):
    """Formatting and hygiene checks for any text file."""

    name = "style"
    category = Category.STYLE

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        source = DEFAULT_RULES if rules is None else rules
        self.rules = tuple(r for r in source if r.category == Category.STYLE)

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        file_path = str(path)
        findings = match_rules(content, file_path, self.rules, suffix=path.suffix)

        limit = config.max_line_length
        for line_num, line in enumerate(content.splitlines(), start=1):
            if len(line) > limit:
                findings.append(
                    builtin_finding(
                        "line-too-long",
                        file_path,
                        line_num,
                        f"Line is {len(line)} characters (limit {limit})",
                        column=limit + 1,
                    )
                )

        return findings
