"""Scanner protocol and the shared file-reading base class."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from qualitygate.errors import IOFault
from qualitygate.scanner.models import Category, Finding, ScanConfig
from qualitygate.scanner.rules import builtin_finding

logger = logging.getLogger(__name__)


class Scanner(Protocol):
    """Protocol for an independent, stateless check over a set of files.

    Scanners run in worker processes, so instances must be picklable.
    """

    name: str
    category: Category

    def accepts(self, path: Path, config: ScanConfig) -> bool:
        """Whether this scanner has anything to say about the file."""
        ...

    def scan_target(self, path: Path, config: ScanConfig) -> list[Finding]:
        """Scan one file. Must not raise for unreadable files."""
        ...

    def scan(self, target_paths: Iterable[Path], config: ScanConfig) -> list[Finding]:
        """Scan every accepted file, sorted by (file, line, check)."""
        ...


def read_target(path: Path) -> str:
    """Read a scan target as text, raising IOFault when it is unreadable."""
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        raise IOFault(str(path), e.strerror or str(e)) from e


def io_error_finding(fault: IOFault) -> Finding:
    return builtin_finding(
        "io-error", fault.path, 0, f"Cannot read file: {fault.reason}"
    )


class FileScanner:
    """Base class: read each file once, hand its text to check()."""

    name = "file"
    category = Category.STYLE
    extensions: tuple[str, ...] = ()

    def accepts(self, path: Path, config: ScanConfig) -> bool:
        return not self.extensions or path.suffix.lower() in self.extensions

    def scan_target(self, path: Path, config: ScanConfig) -> list[Finding]:
        try:
            content = read_target(path)
        except IOFault as fault:
            logger.debug("%s could not read %s: %s", self.name, path, fault.reason)
            return [io_error_finding(fault)]
        findings = self.check(content, path, config)
        findings.sort(key=lambda f: f.sort_key)
        return findings

    def scan(self, target_paths: Iterable[Path], config: ScanConfig) -> list[Finding]:
        findings: list[Finding] = []
        for path in sorted(target_paths):
            if self.accepts(path, config):
                findings.extend(self.scan_target(path, config))
        findings.sort(key=lambda f: f.sort_key)
        return findings

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        raise NotImplementedError
