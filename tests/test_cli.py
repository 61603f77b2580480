"""
CLI tests for `hfmeds key-points`, `hfmeds coverage` and `hfmeds check-table`.
"""

import logging
import os
import re

from click.testing import CliRunner

from hfmeds.__main__ import NO_KEY_POINTS, main


def _key_points(*args, table=None):
    argv = ["key-points", "-m", "optimizations-available", "-s", "inadequate-data", "-d", "inadequate-data", *args]
    if table:
        argv += ["--table", table]
    return CliRunner().invoke(main, argv)


def test_key_points_prints_numbered_fragments(fpath_key_points):
    result = _key_points("-w", "stable-or-decreasing", table=fpath_key_points)
    assert result.exit_code == 0, result.output
    assert result.output.startswith("1.) There are possible options to improve your heart medicines.")


def test_key_points_unauthored_combination(fpath_key_points):
    result = CliRunner().invoke(
        main,
        ["key-points", "-m", "at-target", "-s", "worsening", "-d", "inadequate-data", "-w", "increasing", "-t", fpath_key_points],
    )
    assert result.exit_code == 0, result.output
    assert NO_KEY_POINTS in result.output


def test_key_points_rejects_unknown_category():
    result = _key_points("-w", "gaining")
    assert result.exit_code != 0
    assert "gaining" in result.output


def test_key_points_uses_language_from_environment(write_csv, monkeypatch):
    path = write_csv(
        "Medication,Symptom Score,Dizziness,Weight,en,de\n"
        "optimizations-available,inadequate-data,inadequate-data,missing,Hello.,Hallo.\n"
    )
    monkeypatch.setenv("HFMEDS_LANGUAGES", "fr, de")
    result = _key_points("-w", "missing", table=path)
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "1.) Hallo."

    result = _key_points("-w", "missing", "-l", "en", table=path)
    assert result.output.strip() == "1.) Hello."


def test_coverage_lists_unauthored(fpath_key_points):
    result = CliRunner().invoke(main, ["coverage", "--table", fpath_key_points])
    assert result.exit_code == 0, result.output
    assert "Authored: 105 of 180 combinations" in result.output
    m = re.search(r"Unauthored: (\d+)", result.output)
    assert m and int(m.group(1)) == 75
    assert "- at-target, worsening, inadequate-data, increasing" in result.output


def test_check_table_reports_errors(write_csv):
    path = write_csv(
        "Medication,Symptom Score,Dizziness,Weight,en\n"
        "at-target,worsening,worsening,missing,One.\n"
        "at-target,worsening,worsening,missing,Two.\n"
    )
    result = CliRunner().invoke(main, ["check-table", "--table", path])
    assert result.exit_code == 1
    assert "duplicate key" in result.output


def test_check_table_ok_with_log_file(fpath_key_points, tmp_path):
    log_file = tmp_path / "hfmeds.log"
    result = CliRunner().invoke(main, ["--verbose", "--log-file", str(log_file), "check-table", "-t", fpath_key_points])
    assert result.exit_code == 0, result.output
    assert "Key-point table OK: 105 entries" in result.output


def test_logging_handlers_are_released_after_command(write_csv, tmp_path):
    table = write_csv("Medication,Symptom Score,Dizziness,Weight,en\nat-target,worsening,worsening,missing,Custom.\n")
    log_file = tmp_path / "hfmeds.log"
    result = CliRunner().invoke(main, ["--verbose", "--log-file", str(log_file), "check-table", "-t", table])
    assert result.exit_code == 0, result.output
    assert "Loaded 1 key-point entries" in log_file.read_text(encoding="utf-8")

    root = logging.getLogger()
    assert not [
        handler
        for handler in root.handlers
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_file)
    ]
    assert not [handler for handler in root.handlers if type(handler) is logging.StreamHandler]
