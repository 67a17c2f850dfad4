"""qualitygate — repository quality gate: scan, score, decide, report."""

__version__ = "0.1.0"
