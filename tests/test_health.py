"""Tests for resticboot.health."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from resticboot.config import Configuration, PushoverChannel
from resticboot.health import health_report, human_size

REMOTE_URL = "https://config.example/raw"


def test_human_size() -> None:
    assert human_size(10) == "10 B"
    assert human_size(1536) == "1.5 KiB"
    assert human_size(5 * 1024**3) == "5.0 GiB"


def test_health_report(tmp_path: Path, make_session: Callable, make_runner: Callable) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "f.txt").write_text("hi")
    missing = str(tmp_path / "gone")
    config = Configuration(paths=(str(data_dir), missing))
    runner = make_runner(stdout="restic 0.9.6\n")

    report = health_report(
        tmp_path / "restic",
        config,
        make_session({REMOTE_URL: {"a": "b"}}),
        REMOTE_URL,
        runner=runner,
    )

    assert "restic version: restic 0.9.6" in report
    assert "pushover configured: no" in report
    assert "email configured: no" in report
    assert '"a": "b"' in report
    assert f" - {data_dir} (1 files, 2 B)" in report
    assert f" - {missing} (missing)" in report
    assert runner.calls[0][0] == [str(tmp_path / "restic"), "version"]


def test_health_report_masks_secrets(
    tmp_path: Path,
    make_session: Callable,
    make_runner: Callable,
) -> None:
    config = Configuration(pushover=PushoverChannel("t", "u"))
    report = health_report(
        tmp_path / "restic",
        config,
        make_session({REMOTE_URL: {"restic-repo-password": "hunter22"}}),
        REMOTE_URL,
        runner=make_runner(),
    )
    assert "hunter22" not in report
    assert "pushover configured: yes" in report


def test_health_report_degrades(tmp_path: Path, make_session: Callable) -> None:
    report = health_report(
        tmp_path / "no-such-restic",
        Configuration(),
        make_session(),
        REMOTE_URL,
    )
    assert "restic version: unavailable" in report
    assert "remote configuration:\n  unavailable" in report
