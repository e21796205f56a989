from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from src.capture import load_captures
from src.config import Settings, load_settings
from src.extract.panes import MODE_DESCRIPTIONS, PaneShapeViolation, explain_extraction, resolve_mode
from src.logging_config import configure_logging

app = typer.Typer(help="Reduce captured window panes to the values a test assertion checks.")
config_app = typer.Typer(help="Configuration commands.")

app.add_typer(config_app, name="config")

logger = logging.getLogger(__name__)


def _bootstrap(config_path: Path, verbose: bool = False) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging, verbose=verbose)
    logger.debug("Loaded runtime settings from %s", config_path)
    return settings


@config_app.command("show")
def show_config(
    config_path: Path = typer.Option(
        Path("configs/default.yaml"),
        "--config",
        "-c",
        envvar="PANE_EXTRACTORS_CONFIG",
        help="Path to YAML configuration file.",
    )
) -> None:
    """Print resolved runtime configuration."""

    try:
        settings = _bootstrap(config_path)
    except (ValidationError, ValueError, FileNotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=settings.output.indent))


@app.command("modes")
def list_modes() -> None:
    """List the available pane extraction modes."""

    for mode, description in MODE_DESCRIPTIONS.items():
        typer.echo(f"{mode.value:<16} {description}")


@app.command("extract")
def extract(
    capture_path: Path = typer.Argument(..., help="JSON or YAML file with per-window pane captures."),
    mode: str | None = typer.Option(None, "--mode", "-m", help="Extraction mode; defaults to extraction.mode."),
    window: str | None = typer.Option(None, "--window", "-w", help="Only extract the window with this label."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the report here instead of stdout."),
    config_path: Path = typer.Option(
        Path("configs/default.yaml"),
        "--config",
        "-c",
        envvar="PANE_EXTRACTORS_CONFIG",
        help="Path to YAML configuration file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Extract the values each captured window contributes under one assertion mode."""

    try:
        settings = _bootstrap(config_path, verbose)
        report = build_extraction_report(
            capture_path,
            mode=mode or settings.extraction.mode,
            window=window or settings.extraction.window,
        )
    except (PaneShapeViolation, ValidationError, ValueError, FileNotFoundError) as exc:
        logger.error("Extraction failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    rendered = json.dumps(report, indent=settings.output.indent, ensure_ascii=False, default=str)
    if output is None:
        typer.echo(rendered)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered, encoding="utf-8")
    logger.info("Wrote extraction report for %d window(s) to %s", len(report["windows"]), output)
    typer.echo(str(output))


def build_extraction_report(capture_path: Path, *, mode: str, window: str | None = None) -> dict[str, Any]:
    resolved_mode = resolve_mode(mode)
    captures = load_captures(capture_path)
    if window is not None:
        captures = [capture for capture in captures if capture.window == window]
        if not captures:
            raise ValueError(f"No window labelled '{window}' in {capture_path}.")

    windows: list[dict[str, Any]] = []
    for capture in captures:
        try:
            details = explain_extraction(capture.records, resolved_mode)
        except PaneShapeViolation as exc:
            logger.error("Window '%s' record %d is %s", capture.window, exc.position, exc.reason)
            raise

        windows.append(
            {
                "window": capture.window,
                "values": details.values,
                "input_count": details.input_count,
                "selected_count": details.selected_count,
                "dropped_count": details.dropped_count,
                "timings": details.timings,
            }
        )

    return {
        "status": "ok",
        "mode": resolved_mode.value,
        "capture_path": str(capture_path),
        "windows": windows,
    }


if __name__ == "__main__":
    app()
