"""Quality report model, rendering, and atomic persistence."""

from qualitygate.report.models import QualityReport
from qualitygate.report.renderer import load_report, render
from qualitygate.report.writer import persist

__all__ = ["QualityReport", "load_report", "persist", "render"]
