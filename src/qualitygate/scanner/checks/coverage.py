"""Coverage scanner — reads Cobertura XML and coverage.py JSON reports."""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from qualitygate.scanner.checks.base import FileScanner
from qualitygate.scanner.models import Category, Finding, ScanConfig
from qualitygate.scanner.rules import builtin_finding

logger = logging.getLogger(__name__)

_XML_REPORTS = {"coverage.xml", "cobertura.xml", "cobertura-coverage.xml"}
_JSON_REPORTS = {"coverage.json"}


class CoverageScanner(FileScanner):
    """Checks test coverage reports found in the target against a minimum."""

    name = "coverage"
    category = Category.COVERAGE

    def accepts(self, path: Path, config: ScanConfig) -> bool:
        return path.name in _XML_REPORTS or path.name in _JSON_REPORTS

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        file_path = str(path)
        try:
            if path.name in _JSON_REPORTS:
                total, per_file = _parse_json(content)
            else:
                total, per_file = _parse_cobertura(content)
        except (ValueError, KeyError, TypeError, ET.ParseError) as e:
            logger.debug("Unreadable coverage report %s: %s", file_path, e)
            return [
                builtin_finding(
                    "coverage-report-invalid",
                    file_path,
                    0,
                    f"Coverage report could not be parsed: {e}",
                )
            ]

        findings: list[Finding] = []
        if total < config.min_coverage:
            findings.append(
                builtin_finding(
                    "low-coverage",
                    file_path,
                    0,
                    f"Total coverage {total:.1f}% is below "
                    f"minimum {config.min_coverage:.1f}%",
                )
            )

        for name, percent in per_file:
            if percent <= 0:
                findings.append(
                    builtin_finding(
                        "uncovered-file",
                        file_path,
                        0,
                        f"{name} has no test coverage",
                    )
                )

        return findings


def _parse_cobertura(content: str) -> tuple[float, list[tuple[str, float]]]:
    root = ET.fromstring(content)
    if root.tag != "coverage" or "line-rate" not in root.attrib:
        raise ValueError("not a Cobertura report")
    total = float(root.attrib["line-rate"]) * 100
    per_file: list[tuple[str, float]] = []
    for cls in root.iter("class"):
        filename = cls.attrib.get("filename", cls.attrib.get("name", "?"))
        per_file.append((filename, float(cls.attrib.get("line-rate", 0)) * 100))
    return total, per_file


def _parse_json(content: str) -> tuple[float, list[tuple[str, float]]]:
    data = json.loads(content)
    if not isinstance(data, dict) or "totals" not in data:
        raise ValueError("not a coverage.py JSON report")
    total = float(data["totals"]["percent_covered"])
    per_file = [
        (name, float(entry["summary"]["percent_covered"]))
        for name, entry in sorted(data.get("files", {}).items())
    ]
    return total, per_file

