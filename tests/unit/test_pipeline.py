"""End-to-end pipeline tests: scan, aggregate, score, gate."""

from __future__ import annotations

from pathlib import Path

import pytest

from qualitygate.context import RunContext
from qualitygate.pipeline import QualityPipeline
from qualitygate.policy.loader import load_profile, load_profile_from_string
from qualitygate.policy.models import GateDecision, GatePolicy, Profile
from qualitygate.scanner.checks import StyleScanner
from qualitygate.scanner.models import Category, ScanConfig, Severity
from qualitygate.scanner.rules import Rule


def test_hardcoded_secret_fails_gate(secret_repo: Path):
    report = QualityPipeline().run(RunContext(target=secret_repo))

    secrets = [f for f in report.scan_report.findings if f.check_id == "secret-pattern"]
    assert len(secrets) == 1
    assert secrets[0].severity == Severity.CRITICAL
    assert secrets[0].location == (str(secret_repo.resolve() / "settings.py"), 10)
    assert report.gate_decision == GateDecision.FAIL
    assert any("critical" in r for r in report.reasons)


def test_empty_directory_passes(tmp_path: Path):
    report = QualityPipeline().run(RunContext(target=tmp_path))
    assert report.scan_report.findings == ()
    assert report.overall_score == 100
    assert report.gate_decision == GateDecision.PASS
    assert report.reasons == ()


def test_clean_repo_passes(clean_repo: Path):
    context = RunContext(target=clean_repo)
    report = QualityPipeline().run(context)
    assert report.passed
    assert report.run_id == context.run_id
    assert report.scan_report.started_at == context.started_at
    assert [s.category for s in report.scores] == list(Category)


def test_timeout_does_not_abort_run(
    tmp_path: Path, runaway_rule: Rule, runaway_line: str
):
    for name in ("a.py", "b.py", "d.py", "e.py"):
        (tmp_path / name).write_text("x = 1\n")
    (tmp_path / "c.py").write_text(runaway_line)
    profile = Profile(scan=ScanConfig(timeout=2.0, workers=5))
    pipeline = QualityPipeline(profile, scanners=[StyleScanner(rules=[runaway_rule])])
    report = pipeline.run(RunContext(target=tmp_path))

    timeouts = [f for f in report.scan_report.findings if f.check_id == "scan-timeout"]
    assert [Path(f.file_path).name for f in timeouts] == ["c.py"]
    assert timeouts[0].severity == Severity.WARNING
    assert report.overall_score == pytest.approx(97)
    assert report.passed


def test_default_report_artifact_is_not_scanned(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    (tmp_path / "a.py").write_text("x = 1\n")
    (tmp_path / "quality-report.txt").write_text("TODO: fix everything\n")
    (tmp_path / ".quality-report.txt.abc123.tmp").write_text("FIXME \n")
    monkeypatch.chdir(tmp_path)

    report = QualityPipeline().run(RunContext(target=Path(".")))
    assert report.scan_report.findings == ()
    assert report.overall_score == 100


def test_disabled_code_checks_are_dropped(tmp_path: Path):
    (tmp_path / "wide.py").write_text("x = '" + "a" * 40 + "'\n")
    profile = load_profile_from_string(
        "disable: [line-too-long]\nscan:\n  max_line_length: 20\n"
    )
    report = QualityPipeline(profile).run(RunContext(target=tmp_path))
    assert report.scan_report.findings == ()


def test_profile_rules_reach_scanners(tmp_path: Path, fixtures_dir: Path):
    (tmp_path / "cli.py").write_text("print('hi')  # TODO\n")
    profile = load_profile(fixtures_dir / "child_profile.yaml")
    report = QualityPipeline(profile).run(RunContext(target=tmp_path))
    assert [f.check_id for f in report.scan_report.findings] == ["no-print"]


def test_raised_threshold_fails(tmp_path: Path):
    (tmp_path / "a.py").write_text("# TODO\n# FIXME\nx = 1 \n")
    default = QualityPipeline().run(RunContext(target=tmp_path))
    assert default.passed
    assert default.overall_score == pytest.approx(97)

    demanding = Profile(gate=GatePolicy(min_overall_score=99))
    report = QualityPipeline(demanding).run(RunContext(target=tmp_path))
    assert not report.passed
    assert report.reasons == ("Overall score 97.0 is below the minimum of 99",)


def test_cancelled_pipeline_still_reports(clean_repo: Path):
    pipeline = QualityPipeline()
    pipeline.cancel()
    report = pipeline.run(RunContext(target=clean_repo))
    assert {f.check_id for f in report.scan_report.findings} == {"scan-timeout"}
    # three abandoned units on calc.py cost 9 coverage points
    assert report.overall_score == pytest.approx(91)
    assert report.passed
