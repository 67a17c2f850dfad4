"""Scanner data models — findings, scan configuration, and scan reports."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class Severity(enum.Enum):
    """Finding severity level."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Category(enum.Enum):
    """Scoring category. Declaration order is registration order."""

    STYLE = "style"
    SECURITY = "security"
    COMPLEXITY = "complexity"
    COVERAGE = "coverage"


@dataclass(frozen=True)
class Finding:
    """A single issue reported by one scanner."""

    check_id: str
    severity: Severity
    category: Category
    file_path: str
    line: int
    message: str
    column: int = 0

    @property
    def location(self) -> tuple[str, int]:
        return (self.file_path, self.line)

    @property
    def sort_key(self) -> tuple[str, int, str]:
        return (self.file_path, self.line, self.check_id)

    def to_dict(self) -> dict:
        return {
            "check_id": self.check_id,
            "severity": self.severity.value,
            "category": self.category.value,
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Finding:
        return cls(
            check_id=data["check_id"],
            severity=Severity(data["severity"]),
            category=Category(data["category"]),
            file_path=data["file_path"],
            line=int(data["line"]),
            message=data["message"],
            column=int(data.get("column", 0)),
        )


@dataclass(frozen=True)
class ScanConfig:
    """Limits and knobs shared by every scanner in a run."""

    timeout: float = 10.0
    workers: int = 4
    max_file_size: int = 1_048_576
    max_line_length: int = 120
    max_file_lines: int = 1000
    max_complexity: int = 10
    max_function_length: int = 60
    max_nesting: int = 4
    max_parameters: int = 6
    min_coverage: float = 80.0
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanReport:
    """Merged findings of every scanner for one target."""

    target: str
    findings: tuple[Finding, ...] = ()
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "findings": [f.to_dict() for f in self.findings],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScanReport:
        return cls(
            target=data["target"],
            findings=tuple(Finding.from_dict(f) for f in data.get("findings", [])),
            started_at=float(data["started_at"]),
            finished_at=float(data["finished_at"]),
        )


@dataclass
class ScannerResult:
    """Output of one scanner across all of its units, before aggregation."""

    scanner_name: str
    findings: list[Finding] = field(default_factory=list)
    units: int = 0
    crashed: int = 0

    @property
    def faulted(self) -> bool:
        """True when the scanner had work and crashed on every unit."""
        return self.units > 0 and self.crashed == self.units
