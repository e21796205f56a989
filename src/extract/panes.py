from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, TypeVar

from src.models import AnnotatedRecord, PaneInfo, Timing

logger = logging.getLogger(__name__)

T = TypeVar("T")

Extractor = Callable[[Iterable[AnnotatedRecord[Any]]], list[Any]]


class PaneExtractor(str, Enum):
    """Assertion modes, one per way of reducing a window's panes to values."""

    ONLY_PANE = "only_pane"
    ON_TIME_PANE = "on_time_pane"
    FINAL_PANE = "final_pane"
    NON_LATE_PANES = "non_late_panes"
    ALL_PANES = "all_panes"


class PaneShapeViolation(AssertionError):
    """A record was not produced by a trigger that fires at most once."""

    def __init__(self, reason: str, pane: PaneInfo, position: int) -> None:
        self.reason = reason
        self.pane = pane
        self.position = position
        super().__init__(
            "Expected elements to be produced by a trigger that fires at most once, "
            f"but got a value in a pane that is {reason} (record {position}). "
            f"Actual Pane Info: {pane}"
        )


@dataclass(slots=True)
class ExtractionDetails:
    """Explainable output for a single extraction call."""

    mode: PaneExtractor
    values: list[Any]
    input_count: int
    selected_count: int
    dropped_count: int
    timings: dict[str, int]


def only_pane(records: Iterable[AnnotatedRecord[T]]) -> list[T]:
    """Return every value, requiring each to sit in the window's first and last pane."""

    outputs: list[T] = []
    for position, record in enumerate(records):
        pane = record.pane
        if not pane.is_first:
            raise PaneShapeViolation("not the first pane", pane, position)
        if not pane.is_last:
            raise PaneShapeViolation("not the last pane", pane, position)
        outputs.append(record.value)
    return outputs


def on_time_pane(records: Iterable[AnnotatedRecord[T]]) -> list[T]:
    """Return values from the ON_TIME pane only."""

    return [record.value for record in records if record.pane.timing == Timing.ON_TIME]


def final_pane(records: Iterable[AnnotatedRecord[T]]) -> list[T]:
    """Return values from the last pane the window will ever fire."""

    return [record.value for record in records if record.pane.is_last]


def non_late_panes(records: Iterable[AnnotatedRecord[T]]) -> list[T]:
    """Return values from EARLY and ON_TIME panes, dropping LATE ones."""

    return [record.value for record in records if record.pane.timing != Timing.LATE]


def all_panes(records: Iterable[AnnotatedRecord[T]]) -> list[T]:
    return [record.value for record in records]


_EXTRACTORS: dict[PaneExtractor, Extractor] = {
    PaneExtractor.ONLY_PANE: only_pane,
    PaneExtractor.ON_TIME_PANE: on_time_pane,
    PaneExtractor.FINAL_PANE: final_pane,
    PaneExtractor.NON_LATE_PANES: non_late_panes,
    PaneExtractor.ALL_PANES: all_panes,
}

MODE_DESCRIPTIONS: dict[PaneExtractor, str] = {
    PaneExtractor.ONLY_PANE: "values of a window that fired exactly once; fails on any other pane",
    PaneExtractor.ON_TIME_PANE: "values of the ON_TIME pane",
    PaneExtractor.FINAL_PANE: "values of the last pane",
    PaneExtractor.NON_LATE_PANES: "values of EARLY and ON_TIME panes",
    PaneExtractor.ALL_PANES: "values of every pane",
}


def resolve_mode(mode: str | PaneExtractor) -> PaneExtractor:
    """Accept a mode enum or a name such as `final_pane`, `final-pane` or `finalPane`."""

    if isinstance(mode, PaneExtractor):
        return mode

    snake = re.sub(r"(?<=[a-z])(?=[A-Z])", "_", str(mode).strip())
    normalized = snake.lower().replace("-", "_")
    try:
        return PaneExtractor(normalized)
    except ValueError:
        msg = (
            f"Unsupported pane extractor '{mode}'. "
            f"Expected one of: {', '.join(item.value for item in PaneExtractor)}."
        )
        raise ValueError(msg) from None


def get_extractor(mode: str | PaneExtractor) -> Extractor:
    return _EXTRACTORS[resolve_mode(mode)]


def extract_values(records: Iterable[AnnotatedRecord[T]], mode: str | PaneExtractor) -> list[T]:
    """Reduce one window's annotated records to the values the given mode selects."""

    return get_extractor(mode)(records)


def explain_extraction(records: Iterable[AnnotatedRecord[T]], mode: str | PaneExtractor) -> ExtractionDetails:
    """Run an extractor and report how many records it kept and dropped."""

    resolved = resolve_mode(mode)
    materialized = list(records)
    values = _EXTRACTORS[resolved](materialized)
    timings = Counter(record.pane.timing.value for record in materialized)

    logger.debug(
        "Extracted %d of %d values with %s",
        len(values),
        len(materialized),
        resolved.value,
    )
    return ExtractionDetails(
        mode=resolved,
        values=values,
        input_count=len(materialized),
        selected_count=len(values),
        dropped_count=len(materialized) - len(values),
        timings={timing.value: timings.get(timing.value, 0) for timing in Timing},
    )
