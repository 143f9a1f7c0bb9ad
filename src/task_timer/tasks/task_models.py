# src/task_timer/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def parse_int(raw: Any, field: str) -> int:
    """Strict integer coercion for wire values; raises ValueError."""
    value = _coerce_int(raw, field)
    # SQLite INTEGER is a signed 64-bit value.
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"{field} is out of range: {value}")
    return value


def _coerce_int(raw: Any, field: str) -> int:
    # bool is an int subclass; a JSON true/false is never a valid number here.
    if isinstance(raw, bool):
        raise ValueError(f"{field} must be an integer, got {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    raise ValueError(f"{field} must be an integer, got {raw!r}")


@dataclass(slots=True)
class Task:
    """
    One named timer.

    - id: assigned by the caller, never generated by the store
    - elapsed_time: accumulated seconds
    - position: display order (ties broken by id)
    """

    id: int
    label: str
    elapsed_time: int = 0
    position: int = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Task:
        """Decode the front end's `{id, label, elapsed_time, position}` mapping."""
        if not isinstance(payload, Mapping):
            raise ValueError(f"task payload must be a mapping, got {type(payload).__name__}")
        if "id" not in payload:
            raise ValueError("task id is required")
        label = payload.get("label")
        if label is None:
            raise ValueError("task label is required")

        elapsed = parse_int(payload.get("elapsed_time", 0) or 0, "elapsed_time")
        if elapsed < 0:
            raise ValueError(f"elapsed_time must be non-negative, got {elapsed}")

        return cls(
            id=parse_int(payload["id"], "id"),
            label=str(label),
            elapsed_time=elapsed,
            position=parse_int(payload.get("position", 0) or 0, "position"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "elapsed_time": self.elapsed_time,
            "position": self.position,
        }
