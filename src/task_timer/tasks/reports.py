# src/task_timer/tasks/reports.py

"""
Formatting helpers for timers and exports.

- HH:MM:SS rendering and parsing of user-typed durations
- story points (60 minutes => 1 point)
- CSV export and a Markdown daily report
"""

from __future__ import annotations

import csv
import io
import math
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime

from .task_models import Task

_CLOCK_RE = re.compile(r"^\d+(:\d+){0,2}$")

SECONDS_PER_POINT = 3600


def format_time(total_seconds: int) -> str:
    total_seconds = max(0, int(total_seconds))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_time_input(value: str | None) -> int | None:
    """
    Parse a duration typed by the user into seconds.

    Accepts HH:MM:SS, MM:SS or SS. Anything else that looks like a number
    (decimal comma allowed) is taken as minutes. Returns None when invalid.
    """
    text = str(value if value is not None else "").strip()
    if not text:
        return None

    if _CLOCK_RE.match(text):
        parts = [int(p) for p in text.split(":")]
        hours = minutes = 0
        if len(parts) == 3:
            hours, minutes, seconds = parts
        elif len(parts) == 2:
            minutes, seconds = parts
        else:
            (seconds,) = parts
        return hours * 3600 + minutes * 60 + seconds

    try:
        as_minutes = float(text.replace(",", "."))
    except ValueError:
        return None
    if not math.isfinite(as_minutes) or as_minutes < 0:
        return None
    # Round half up.
    return int(math.floor(as_minutes * 60 + 0.5))


def story_points(seconds: int) -> float:
    return seconds / SECONDS_PER_POINT


def total_elapsed(tasks: Iterable[Task]) -> int:
    return sum(t.elapsed_time for t in tasks)


def tasks_to_csv(tasks: Iterable[Task]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    writer.writerow(["Task", "Story Points"])
    for t in tasks:
        writer.writerow([t.label, f"{story_points(t.elapsed_time):.2f}"])
    # No line break after the last row.
    return buf.getvalue().removesuffix("\r\n")


def tasks_to_markdown(tasks: Iterable[Task], *, day: date | None = None) -> str:
    if day is None:
        day = datetime.now(UTC).date()
    lines = [f"### Daily Report {day.isoformat()}"]
    for t in tasks:
        lines.append(f"- [{story_points(t.elapsed_time):.2f}] {t.label}")
    return "\n".join(lines)
