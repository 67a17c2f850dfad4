"""Error taxonomy — every fatal error carries the exit code the CLI uses."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from qualitygate.scanner.models import Finding


class QualityGateError(Exception):
    """Base class for qualitygate errors."""

    exit_code = 3


class ConfigError(QualityGateError):
    """Bad CLI arguments or a malformed configuration file."""

    exit_code = 2


class IOFault(QualityGateError):
    """A scan target could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ScanFault(QualityGateError):
    """Every scanner crashed, leaving nothing to score."""

    def __init__(self, message: str, findings: list[Finding] | None = None) -> None:
        super().__init__(message)
        self.findings = list(findings or [])


class ReportIOFault(QualityGateError):
    """The final report artifact could not be written."""

    def __init__(self, destination: str, reason: str) -> None:
        super().__init__(f"Cannot write report to {destination}: {reason}")
        self.destination = destination
        self.reason = reason
