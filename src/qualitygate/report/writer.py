"""Atomic report persistence — temp file, fsync, rename."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from qualitygate.errors import ReportIOFault

logger = logging.getLogger(__name__)


def persist(artifact: str, destination: str | Path) -> Path:
    """Write artifact to destination, replacing any existing file atomically.

    The text goes to a temporary file in the destination directory which is
    renamed over the target only once fully written, so readers never see a
    partial report.
    """
    target = Path(destination)
    tmp_path: Path | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
            encoding="utf-8",
            newline="",
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(artifact)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, target)
    except OSError as e:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        raise ReportIOFault(str(target), e.strerror or str(e)) from e

    logger.info("Report written to %s", target)
    return target
