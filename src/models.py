from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Timing(str, Enum):
    """When a pane fired relative to its window's event-time watermark."""

    EARLY = "EARLY"
    ON_TIME = "ON_TIME"
    LATE = "LATE"

    @classmethod
    def parse(cls, raw: str | Timing) -> Timing:
        if isinstance(raw, Timing):
            return raw
        normalized = str(raw).upper().strip().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            msg = f"Unsupported pane timing '{raw}'. Expected one of: EARLY, ON_TIME, LATE."
            raise ValueError(msg) from None


@dataclass(frozen=True, slots=True)
class PaneInfo:
    """Firing metadata attached to every value a window emits."""

    is_first: bool
    is_last: bool
    timing: Timing
    index: int = 0
    on_time_index: int = -1

    def __str__(self) -> str:
        return (
            f"PaneInfo{{isFirst={str(self.is_first).lower()}, "
            f"isLast={str(self.is_last).lower()}, "
            f"timing={self.timing.value}, "
            f"index={self.index}, "
            f"onTimeIndex={self.on_time_index}}}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_first": self.is_first,
            "is_last": self.is_last,
            "timing": self.timing.value,
            "index": self.index,
            "on_time_index": self.on_time_index,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PaneInfo:
        missing = [key for key in ("is_first", "is_last", "timing") if key not in payload]
        if missing:
            raise ValueError(f"Pane metadata is missing required keys: {', '.join(missing)}")

        return cls(
            is_first=_require_bool(payload, "is_first"),
            is_last=_require_bool(payload, "is_last"),
            timing=Timing.parse(payload["timing"]),
            index=_require_int(payload, "index", 0),
            on_time_index=_require_int(payload, "on_time_index", -1),
        )


def _require_bool(payload: dict[str, Any], key: str) -> bool:
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"Pane metadata '{key}' must be a boolean, got {value!r}")
    return value


def _require_int(payload: dict[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Pane metadata '{key}' must be an integer, got {value!r}")
    return value


ONLY_FIRING = PaneInfo(is_first=True, is_last=True, timing=Timing.ON_TIME, index=0, on_time_index=0)


@dataclass(frozen=True, slots=True)
class AnnotatedRecord(Generic[T]):
    """One emitted value paired with the pane it was emitted in."""

    value: T
    pane: PaneInfo


@dataclass(slots=True)
class WindowCapture(Generic[T]):
    """All captured emissions for one window, in emission order."""

    window: str
    records: list[AnnotatedRecord[T]] = field(default_factory=list)
