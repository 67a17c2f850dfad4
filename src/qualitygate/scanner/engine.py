"""Scan engine — runs scanners over a target in a pool of worker processes."""

from __future__ import annotations

import fnmatch
import logging
import multiprocessing as mp
import os
import signal
import threading
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from multiprocessing.pool import AsyncResult, Pool
from pathlib import Path

from qualitygate.errors import ScanFault
from qualitygate.scanner.aggregator import aggregate
from qualitygate.scanner.checks import Scanner, default_scanners
from qualitygate.scanner.models import Finding, ScanConfig, ScannerResult, ScanReport
from qualitygate.scanner.rules import builtin_finding

logger = logging.getLogger(__name__)

# Directories to always skip
_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".venv",
    "venv",
    ".env",
    "env",
    "dist",
    "build",
    ".tox",
    ".eggs",
    "htmlcov",
}

# Binary / non-text extensions to skip
_SKIP_EXTENSIONS = {
    ".pyc",
    ".pyo",
    ".so",
    ".dylib",
    ".dll",
    ".exe",
    ".bin",
    ".dat",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".svg",
    ".pdf",
    ".doc",
    ".docx",
    ".zip",
    ".tar",
    ".gz",
    ".bz2",
    ".whl",
    ".egg",
    ".db",
    ".sqlite",
    ".sqlite3",
}

# How often a waiting collector re-checks for cancellation
_POLL_INTERVAL = 0.05


def _init_worker() -> None:
    # The parent owns SIGINT; SIGTERM must stay fatal for Pool.terminate()
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    signal.signal(signal.SIGTERM, signal.SIG_DFL)


def _scan_unit(scanner: Scanner, path: Path, config: ScanConfig) -> list[Finding]:
    return scanner.scan_target(path, config)


@dataclass
class _Unit:
    """One scanner applied to one file."""

    scanner: Scanner
    path: Path
    pending: AsyncResult | None = None


class _WorkerPool:
    """Process pool whose workers are killed when a unit is abandoned.

    Worker processes, unlike threads, can be stopped mid-unit, so a hung
    scanner (including a regex stuck in backtracking) never outlives the run.
    """

    def __init__(self, workers: int, config: ScanConfig) -> None:
        self._workers = max(1, workers)
        self._config = config
        self._pool: Pool | None = None

    def submit(self, units: Iterable[_Unit]) -> None:
        units = list(units)
        if not units:
            return
        if self._pool is None:
            self._pool = mp.Pool(
                processes=min(self._workers, len(units)),
                initializer=_init_worker,
            )
        for unit in units:
            unit.pending = self._pool.apply_async(
                _scan_unit, (unit.scanner, unit.path, self._config)
            )

    def restart(self, units: Iterable[_Unit]) -> None:
        """Kill every worker, then resubmit the units that had not finished."""
        self.terminate()
        self.submit(
            u for u in units if u.pending is not None and not u.pending.ready()
        )

    def terminate(self) -> None:
        if self._pool is not None:
            self._pool.terminate()
            self._pool.join()
            self._pool = None


class ScanEngine:
    """Orchestrates independent scanners across a target's files."""

    def __init__(
        self,
        scanners: Sequence[Scanner] | None = None,
        config: ScanConfig | None = None,
    ) -> None:
        self._scanners = list(scanners) if scanners is not None else default_scanners()
        self._config = config or ScanConfig()
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """Abandon in-flight scanner work. Safe to call from any thread."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def scan(self, target: str | Path) -> ScanReport:
        """Scan a file or directory and return the aggregated report."""
        target = Path(target).resolve()
        started = time.time()
        results = self.run(self.collect_targets(target))
        return aggregate(results, str(target), started, time.time())

    def collect_targets(
        self, target: Path, ignore: Iterable[Path] = ()
    ) -> list[Path]:
        """List scannable files under target in sorted order.

        Paths in ignore (the run's own report artifact) and their temporary
        siblings are never scanned.
        """
        ignored = {Path(p).resolve() for p in ignore}
        if target.is_file():
            root = target.parent
            return [target] if self._accepts(target, root, ignored) else []
        return list(self._walk(target, ignored))

    def run(self, targets: Sequence[Path]) -> list[ScannerResult]:
        """Run every scanner over targets; one result per scanner.

        Raises ScanFault when every scanner that had work crashed on all of it.
        Once cancelled, an engine abandons every unit of later runs too.
        """
        targets = sorted(targets)
        plan: list[tuple[ScannerResult, list[_Unit]]] = []
        for scanner in self._scanners:
            result = ScannerResult(scanner_name=scanner.name)
            units = [
                _Unit(scanner=scanner, path=path)
                for path in targets
                if scanner.accepts(path, self._config)
            ]
            result.units = len(units)
            plan.append((result, units))
        queue = [unit for _, units in plan for unit in units]

        pool = _WorkerPool(self._config.workers, self._config)
        try:
            if not self.cancelled:
                pool.submit(queue)

            # Barrier: every unit completes, times out, or is abandoned
            for result, units in plan:
                for unit in units:
                    findings, crashed = self._await(unit, pool, queue)
                    result.findings.extend(findings)
                    result.crashed += int(crashed)
                result.findings.sort(key=lambda f: f.sort_key)
        finally:
            pool.terminate()

        results = [result for result, _ in plan]
        active = [r for r in results if r.units]
        if active and all(r.faulted for r in active):
            crashes = [f for r in results for f in r.findings]
            raise ScanFault("All scanners crashed", crashes)
        return results

    def _await(
        self, unit: _Unit, pool: _WorkerPool, queue: list[_Unit]
    ) -> tuple[list[Finding], bool]:
        deadline = time.monotonic() + self._config.timeout
        while True:
            try:
                if self._cancel.is_set() or unit.pending is None:
                    unit.pending = None
                    return [self._timeout_finding(unit, cancelled=True)], False

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(
                        "%s timed out on %s after %.1fs",
                        unit.scanner.name,
                        unit.path,
                        self._config.timeout,
                    )
                    unit.pending = None
                    pool.restart(queue)
                    return [self._timeout_finding(unit, cancelled=False)], False

                unit.pending.wait(min(remaining, _POLL_INTERVAL))
            except KeyboardInterrupt:
                logger.warning("Interrupted, abandoning in-flight scanners")
                self.cancel()
                continue

            if not unit.pending.ready():
                continue

            try:
                findings = unit.pending.get()
            except Exception as error:
                logger.warning(
                    "%s crashed on %s: %s", unit.scanner.name, unit.path, error
                )
                return [_crash_finding(unit, error)], True
            return list(findings), False

    def _timeout_finding(self, unit: _Unit, cancelled: bool) -> Finding:
        if cancelled:
            message = f"{unit.scanner.name} scan abandoned: run cancelled"
        else:
            message = (
                f"{unit.scanner.name} scan timed out after "
                f"{self._config.timeout:g}s"
            )
        return builtin_finding("scan-timeout", str(unit.path), 0, message)

    def _walk(self, directory: Path, ignored: set[Path]):
        """Walk directory yielding scannable files in sorted order."""
        for root, dirs, files in os.walk(directory):
            # Prune skipped directories in-place
            dirs[:] = sorted(
                d
                for d in dirs
                if d not in _SKIP_DIRS
                and not d.endswith(".egg-info")
                and not self._is_excluded(d)
            )

            for name in sorted(files):
                path = Path(root) / name
                if self._accepts(path, directory, ignored):
                    yield path

    def _accepts(self, path: Path, directory: Path, ignored: set[Path]) -> bool:
        if path.suffix.lower() in _SKIP_EXTENSIONS:
            return False
        if self._is_excluded(path.name) or self._is_excluded(
            str(path.relative_to(directory))
        ):
            return False
        if _is_artifact(path, ignored):
            logger.debug("Skipping %s: report artifact of this run", path)
            return False
        try:
            if path.stat().st_size > self._config.max_file_size:
                logger.debug("Skipping %s: larger than max_file_size", path)
                return False
        except OSError:
            # Broken symlinks and the like surface as io-error findings
            pass
        return True

    def _is_excluded(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self._config.exclude)


def _is_artifact(path: Path, ignored: set[Path]) -> bool:
    if not ignored:
        return False
    resolved = path.resolve()
    return any(
        resolved == artifact
        or (
            resolved.parent == artifact.parent
            and fnmatch.fnmatch(resolved.name, f".{artifact.name}.*.tmp")
        )
        for artifact in ignored
    )


def _crash_finding(unit: _Unit, error: BaseException) -> Finding:
    return builtin_finding(
        "scan-crash",
        str(unit.path),
        0,
        f"{unit.scanner.name} crashed: {type(error).__name__}: {error}",
    )
