from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

import src.cli as cli
from src.config import Settings


def _write_capture(tmp_path: Path) -> Path:
    path = tmp_path / "capture.json"
    path.write_text(
        json.dumps(
            [
                {
                    "window": "w1",
                    "records": [
                        {"value": 1, "pane": {"is_first": True, "is_last": False, "timing": "EARLY"}},
                        {"value": 2, "pane": {"is_first": False, "is_last": False, "timing": "ON_TIME"}},
                        {"value": 3, "pane": {"is_first": False, "is_last": True, "timing": "LATE"}},
                    ],
                },
                {
                    "window": "w2",
                    "records": [{"value": 9, "pane": {"is_first": True, "is_last": True, "timing": "ON_TIME"}}],
                },
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_extract_command_prints_report(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())

    result = CliRunner().invoke(cli.app, ["extract", str(_write_capture(tmp_path)), "--mode", "nonLatePanes"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["status"] == "ok"
    assert report["mode"] == "non_late_panes"
    assert [window["values"] for window in report["windows"]] == [[1, 2], [9]]
    assert report["windows"][0]["dropped_count"] == 1


def test_extract_command_uses_configured_mode_and_window(tmp_path: Path, monkeypatch) -> None:
    settings = Settings.model_validate({"extraction": {"mode": "only_pane", "window": "w2"}})
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: settings)

    result = CliRunner().invoke(cli.app, ["extract", str(_write_capture(tmp_path))])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["mode"] == "only_pane"
    assert report["windows"] == [
        {
            "window": "w2",
            "values": [9],
            "input_count": 1,
            "selected_count": 1,
            "dropped_count": 0,
            "timings": {"EARLY": 0, "ON_TIME": 1, "LATE": 0},
        }
    ]


def test_extract_command_writes_output_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())
    output = tmp_path / "reports" / "final.json"

    result = CliRunner().invoke(
        cli.app,
        ["extract", str(_write_capture(tmp_path)), "--mode", "final_pane", "--output", str(output)],
    )

    assert result.exit_code == 0
    report = json.loads(output.read_text(encoding="utf-8"))
    assert [window["values"] for window in report["windows"]] == [[3], [9]]


def test_extract_command_prints_clean_error_on_pane_shape_violation(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())

    result = CliRunner().invoke(cli.app, ["extract", str(_write_capture(tmp_path)), "--mode", "only_pane"])

    assert result.exit_code == 1
    assert "Error: Expected elements to be produced by a trigger that fires at most once" in result.output
    assert "not the last pane" in result.output
    assert "Traceback" not in result.output


def test_extract_command_rejects_unknown_window(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())

    result = CliRunner().invoke(cli.app, ["extract", str(_write_capture(tmp_path)), "--window", "w9"])

    assert result.exit_code == 1
    assert "No window labelled 'w9'" in result.output


def test_extract_command_reports_missing_capture(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())

    result = CliRunner().invoke(cli.app, ["extract", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "Capture file not found" in result.output


def test_modes_command_lists_every_mode() -> None:
    result = CliRunner().invoke(cli.app, ["modes"])

    assert result.exit_code == 0
    for name in ("only_pane", "on_time_pane", "final_pane", "non_late_panes", "all_panes"):
        assert name in result.output


def test_config_show_prints_resolved_settings(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PANE_EXTRACTORS_EXTRACTION__MODE", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda *_, **__: None)
    config = tmp_path / "config.yaml"
    config.write_text("extraction:\n  mode: final_pane\nlogging:\n  level: WARNING\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["config", "show", "--config", str(config)])

    assert result.exit_code == 0
    assert json.loads(result.output)["extraction"]["mode"] == "final_pane"


def test_extract_command_renders_yaml_dates_as_strings(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda *_: Settings())
    capture = tmp_path / "capture.yaml"
    capture.write_text(
        "windows:\n"
        "  - window: day\n"
        "    records:\n"
        "      - value: 2024-01-01\n"
        "        pane: {is_first: true, is_last: true, timing: ON_TIME}\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli.app, ["extract", str(capture), "--mode", "only_pane"])

    assert result.exit_code == 0
    assert json.loads(result.output)["windows"][0]["values"] == ["2024-01-01"]


def test_extract_command_prints_clean_error_on_bad_env_override(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *_, **__: None)
    monkeypatch.setenv("PANE_EXTRACTORS_EXTRACTION__MODE", "bogus")
    config = tmp_path / "config.yaml"
    config.write_text("extraction:\n  mode: all_panes\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["extract", str(_write_capture(tmp_path)), "--config", str(config)])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Unsupported pane extractor 'bogus'" in result.output
    assert "Traceback" not in result.output


def test_extract_command_reports_missing_config_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *_, **__: None)

    result = CliRunner().invoke(
        cli.app,
        ["extract", str(_write_capture(tmp_path)), "--config", str(tmp_path / "typo.yaml")],
    )

    assert result.exit_code == 1
    assert "Config file not found" in result.output
