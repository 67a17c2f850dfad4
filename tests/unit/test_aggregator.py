"""Tests for merging scanner results into a ScanReport."""

from __future__ import annotations

import pytest

from qualitygate.errors import ConfigError
from qualitygate.scanner.aggregator import aggregate
from qualitygate.scanner.models import Category, Finding, ScannerResult, Severity


def _finding(check_id: str, category: Category, line: int = 1) -> Finding:
    return Finding(
        check_id=check_id,
        severity=Severity.INFO,
        category=category,
        file_path="/repo/a.py",
        line=line,
        message=check_id,
    )


def test_registration_order_regardless_of_completion_order():
    results = [
        ScannerResult("coverage", [_finding("low-coverage", Category.COVERAGE)]),
        ScannerResult("security", [_finding("weak-crypto", Category.SECURITY)]),
        ScannerResult("style", [_finding("todo-marker", Category.STYLE)]),
        ScannerResult("complexity", [_finding("long-function", Category.COMPLEXITY)]),
    ]
    report = aggregate(results, "/repo", 1.0, 2.0)
    assert [f.check_id for f in report.findings] == [
        "todo-marker",
        "weak-crypto",
        "long-function",
        "low-coverage",
    ]
    assert report.started_at == 1.0
    assert report.finished_at == 2.0


def test_preserves_scanner_order():
    style = ScannerResult(
        "style",
        [
            _finding("trailing-whitespace", Category.STYLE, line=1),
            _finding("todo-marker", Category.STYLE, line=1),
            _finding("line-too-long", Category.STYLE, line=5),
        ],
    )
    report = aggregate([style], "/repo", 0.0, 0.0)
    assert tuple(report.findings) == tuple(style.findings)


def test_unregistered_scanners_follow():
    results = [
        ScannerResult("custom", [_finding("x", Category.STYLE)]),
        ScannerResult("style", [_finding("todo-marker", Category.STYLE)]),
    ]
    report = aggregate(results, "/repo", 0.0, 0.0)
    assert [f.check_id for f in report.findings] == ["todo-marker", "x"]


def test_no_scanners_is_config_error():
    with pytest.raises(ConfigError):
        aggregate([], "/repo", 0.0, 0.0)


def test_scanners_without_findings():
    report = aggregate([ScannerResult("style"), ScannerResult("coverage")], "/r", 0, 0)
    assert report.findings == ()
