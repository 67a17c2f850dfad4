"""Run context — explicit per-invocation identity, timing and destination."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_REPORT_STEM = "quality-report"


@dataclass(frozen=True)
class RunContext:
    """Everything a run needs to know about itself, passed explicitly."""

    target: Path
    output_format: str = "text"
    destination: Path | None = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: float = field(default_factory=time.time)

    @property
    def report_path(self) -> Path:
        """Where the artifact goes: explicit destination or ./quality-report.<ext>."""
        if self.destination is not None:
            return self.destination
        ext = "json" if self.output_format == "json" else "txt"
        return Path(f"{DEFAULT_REPORT_STEM}.{ext}")
