"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

import qualitygate
from qualitygate.cli import main
from qualitygate.config import CONFIG_ENV, TIMEOUT_ENV, WORKERS_ENV
from qualitygate.report import load_report
from qualitygate.scanner.checks import FileScanner
from qualitygate.scanner.models import Category, Finding, ScanConfig


class ExplodingScanner(FileScanner):
    name = "style"
    category = Category.STYLE

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        raise RuntimeError("kaboom")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (CONFIG_ENV, WORKERS_ENV, TIMEOUT_ENV):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_main_help(runner: CliRunner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "scan" in result.output
    assert "rules" in result.output


def test_main_version(runner: CliRunner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_scan_help(runner: CliRunner):
    result = runner.invoke(main, ["scan", "--help"])
    assert result.exit_code == 0
    assert "--min-score" in result.output


class TestScan:
    def test_clean_repo_passes(self, runner: CliRunner, clean_repo: Path, tmp_path: Path):
        out = tmp_path / "report.json"
        result = runner.invoke(
            main, ["scan", str(clean_repo), "--format", "json", "--out", str(out)]
        )
        assert result.exit_code == 0, result.output
        report = load_report(out.read_text())
        assert report.passed
        assert report.overall_score == 100

    def test_secret_fails_gate(self, runner: CliRunner, secret_repo: Path, tmp_path: Path):
        out = tmp_path / "report.json"
        result = runner.invoke(
            main, ["scan", str(secret_repo), "--format", "json", "-o", str(out)]
        )
        assert result.exit_code == 1
        data = json.loads(out.read_text())
        assert data["gate_decision"] == "fail"
        assert [f["check_id"] for f in data["scan_report"]["findings"]] == [
            "secret-pattern"
        ]

    def test_max_critical_override(
        self, runner: CliRunner, secret_repo: Path, tmp_path: Path
    ):
        out = tmp_path / "report.txt"
        result = runner.invoke(
            main, ["scan", str(secret_repo), "--max-critical", "1", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert "Gate: PASS" in out.read_text()

    def test_min_score_override(self, runner: CliRunner, tmp_path: Path):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "a.py").write_text("# TODO: finish\n")
        out = tmp_path / "report.json"
        result = runner.invoke(
            main,
            ["scan", str(repo), "--min-score", "100", "--format", "json", "-o", str(out)],
        )
        assert result.exit_code == 1
        data = json.loads(out.read_text())
        assert data["reasons"] == ["Overall score 99.0 is below the minimum of 100"]

    def test_exclude(self, runner: CliRunner, secret_repo: Path, tmp_path: Path):
        out = tmp_path / "report.txt"
        result = runner.invoke(
            main, ["scan", str(secret_repo), "-e", "settings.py", "-o", str(out)]
        )
        assert result.exit_code == 0, result.output

    def test_default_report_path(
        self, runner: CliRunner, clean_repo: Path, tmp_path: Path, monkeypatch
    ):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(main, ["scan", str(clean_repo)])
        assert result.exit_code == 0, result.output
        assert "Gate: PASS" in (tmp_path / "quality-report.txt").read_text()

    def test_preset_config(self, runner: CliRunner, clean_repo: Path, tmp_path: Path):
        out = tmp_path / "report.json"
        result = runner.invoke(
            main,
            ["--config", "preset:strict", "scan", str(clean_repo), "--format", "json"]
            + ["-o", str(out)],
        )
        assert result.exit_code == 0, result.output

    def test_bad_config_exits_2(self, runner: CliRunner, clean_repo: Path, tmp_path: Path):
        out = tmp_path / "report.txt"
        result = runner.invoke(
            main,
            ["--config", str(tmp_path / "nope.yaml"), "scan", str(clean_repo)]
            + ["-o", str(out)],
        )
        assert result.exit_code == 2
        assert "Error" in result.output
        assert not out.exists()

    def test_bad_environment_exits_2(
        self, runner: CliRunner, clean_repo: Path, monkeypatch
    ):
        monkeypatch.setenv(WORKERS_ENV, "lots")
        result = runner.invoke(main, ["scan", str(clean_repo)])
        assert result.exit_code == 2

    def test_usage_errors_exit_2(self, runner: CliRunner, clean_repo: Path, tmp_path: Path):
        assert runner.invoke(main, ["scan", str(tmp_path / "missing")]).exit_code == 2
        bad_format = runner.invoke(main, ["scan", str(clean_repo), "--format", "xml"])
        assert bad_format.exit_code == 2
        bad_score = runner.invoke(main, ["scan", str(clean_repo), "--min-score", "101"])
        assert bad_score.exit_code == 2

    def test_unwritable_report_exits_3(
        self, runner: CliRunner, clean_repo: Path, tmp_path: Path
    ):
        blocker = tmp_path / "file"
        blocker.write_text("")
        result = runner.invoke(
            main,
            ["scan", str(clean_repo), "--format", "json", "-o", str(blocker / "r.json")],
        )
        assert result.exit_code == 3
        # The artifact still reaches stdout
        assert '"gate_decision": "pass"' in result.output

    def test_all_scanners_crashing_exits_3(
        self, runner: CliRunner, clean_repo: Path, tmp_path: Path, monkeypatch
    ):
        monkeypatch.setattr(
            "qualitygate.pipeline.default_scanners",
            lambda rules=None: [ExplodingScanner()],
        )
        out = tmp_path / "report.txt"
        result = runner.invoke(main, ["scan", str(clean_repo), "-o", str(out)])
        assert result.exit_code == 3
        assert "kaboom" in result.output
        assert not out.exists()


class TestRules:
    def test_lists_checks(self, runner: CliRunner):
        result = runner.invoke(main, ["rules"])
        assert result.exit_code == 0
        assert "Checks" in result.output

    def test_with_preset(self, runner: CliRunner):
        result = runner.invoke(main, ["--config", "preset:lenient", "rules"])
        assert result.exit_code == 0
        assert "lenient" in result.output

    def test_bad_config(self, runner: CliRunner, tmp_path: Path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("weights:\n  style: 99\n")
        result = runner.invoke(main, ["--config", str(bad), "rules"])
        assert result.exit_code == 2


class TestProcess:
    def test_hung_scanner_does_not_block_exit(self, tmp_path: Path, runaway_line: str):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "hang.txt").write_text(runaway_line)
        (repo / "ok.py").write_text("x = 1\n")
        profile = tmp_path / "runaway.yaml"
        profile.write_text(
            "rules:\n"
            "  - check_id: runaway-pattern\n"
            "    pattern: '^(a+)+$'\n"
            "    category: style\n"
            "    severity: info\n"
        )
        out = tmp_path / "report.json"
        src = Path(qualitygate.__file__).resolve().parents[1]
        env = {**os.environ, "PYTHONPATH": str(src)}

        completed = subprocess.run(
            [sys.executable, "-c", "from qualitygate.cli import main; main()"]
            + ["--config", str(profile), "scan", str(repo), "--timeout", "2"]
            + ["--format", "json", "-o", str(out)],
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

        assert completed.returncode == 0, completed.stderr
        findings = load_report(out.read_text()).scan_report.findings
        assert [(f.check_id, Path(f.file_path).name) for f in findings] == [
            ("scan-timeout", "hang.txt")
        ]

    def test_repeat_runs_in_target_are_stable(
        self, runner: CliRunner, tmp_path: Path, monkeypatch
    ):
        (tmp_path / "a.py").write_text("x = 1  # TODO\n")
        monkeypatch.chdir(tmp_path)
        artifact = tmp_path / "quality-report.json"

        first = runner.invoke(main, ["scan", ".", "--format", "json"])
        assert first.exit_code == 0, first.output
        before = load_report(artifact.read_text()).scan_report.findings

        second = runner.invoke(main, ["scan", ".", "--format", "json"])
        assert second.exit_code == 0, second.output
        after = load_report(artifact.read_text()).scan_report.findings

        assert [f.check_id for f in before] == ["todo-marker"]
        assert after == before
