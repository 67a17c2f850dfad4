"""Generic rule matcher — interprets the declarative rule table over file text."""

from __future__ import annotations

from collections.abc import Iterable

from qualitygate.scanner.models import Finding
from qualitygate.scanner.rules import Rule, is_excluded


def match_rules(
    content: str,
    file_path: str,
    rules: Iterable[Rule],
    suffix: str = "",
) -> list[Finding]:
    """Apply rules line by line.

    Rules are tried in table order and the first rule to match wins for its
    check id on a given line, so one line yields at most one finding per check.
    """
    applicable = [r for r in rules if r.applies_to(suffix)]
    findings: list[Finding] = []

    for line_num, line in enumerate(content.splitlines(), start=1):
        seen: set[str] = set()
        for rule in applicable:
            if rule.check_id in seen:
                continue
            match = rule.regex.search(line)
            if match is None or is_excluded(match.group(0)):
                continue
            seen.add(rule.check_id)
            findings.append(
                Finding(
                    check_id=rule.check_id,
                    severity=rule.severity,
                    category=rule.category,
                    file_path=file_path,
                    line=line_num,
                    column=match.start() + 1,
                    message=rule.message,
                )
            )

    return findings
