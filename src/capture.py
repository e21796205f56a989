from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from src.models import AnnotatedRecord, PaneInfo, WindowCapture

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def load_captures(path: str | Path) -> list[WindowCapture[Any]]:
    """Load per-window pane captures from a JSON or YAML file."""

    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Capture file not found: {resolved}")

    text = resolved.read_text(encoding="utf-8")
    try:
        if resolved.suffix.lower() in YAML_SUFFIXES:
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Could not parse capture file {resolved}: {exc}") from exc

    return parse_captures(payload)


def parse_captures(payload: Any) -> list[WindowCapture[Any]]:
    if isinstance(payload, dict):
        payload = payload.get("windows")
    if not isinstance(payload, list):
        raise ValueError("Capture payload must be a list of windows or a mapping with a 'windows' list.")

    captures: list[WindowCapture[Any]] = []
    for window_index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise ValueError(f"Window entry {window_index} must be a mapping, got {type(entry).__name__}.")

        label = str(entry.get("window", f"window_{window_index}"))
        raw_records = entry.get("records", [])
        if not isinstance(raw_records, list):
            raise ValueError(f"Window '{label}' records must be a list.")
        if not raw_records:
            logger.warning("Window '%s' has no captured records.", label)

        captures.append(
            WindowCapture(
                window=label,
                records=[_parse_record(label, position, raw) for position, raw in enumerate(raw_records)],
            )
        )

    return captures


def _parse_record(label: str, position: int, raw: Any) -> AnnotatedRecord[Any]:
    if not isinstance(raw, dict) or "value" not in raw or not isinstance(raw.get("pane"), dict):
        raise ValueError(f"Window '{label}' record {position} must have 'value' and a 'pane' mapping.")

    try:
        pane = PaneInfo.from_dict(raw["pane"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Window '{label}' record {position}: {exc}") from exc

    return AnnotatedRecord(value=raw["value"], pane=pane)


def dump_captures(captures: list[WindowCapture[Any]], path: str | Path) -> Path:
    """Write captures as JSON (default) or YAML, based on file extension."""

    resolved = Path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    payload = [
        {
            "window": capture.window,
            "records": [{"value": record.value, "pane": record.pane.to_dict()} for record in capture.records],
        }
        for capture in captures
    ]
    if resolved.suffix.lower() in YAML_SUFFIXES:
        resolved.write_text(yaml.safe_dump({"windows": payload}, sort_keys=False), encoding="utf-8")
    else:
        resolved.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    return resolved
