from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from croniter import croniter

from jobengine.exceptions import InvalidCadenceError


# (field name, min, max); day-of-week 0 is Sunday.
_FIELDS: tuple[tuple[str, int, int], ...] = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day-of-month", 1, 31),
    ("month", 1, 12),
    ("day-of-week", 0, 6),
)


@dataclass(frozen=True)
class Cadence:
    """A validated five-field recurring schedule.

    Only the restricted grammar is accepted: each field is a literal, ``*``
    or ``*/step``. Ranges, lists and names are rejected even though croniter
    would understand them, so every cadence in the system stays readable at a
    glance.
    """

    expression: str

    def next_after(self, moment: datetime) -> datetime:
        """Return the first fire time strictly after ``moment``."""

        return croniter(self.expression, moment).get_next(datetime)

    def __str__(self) -> str:
        return self.expression


def _check_field(raw: str, name: str, lo: int, hi: int, expr: str) -> None:
    if raw == "*":
        return

    if raw.startswith("*/"):
        step = raw[2:]
        if not step.isdigit() or not 1 <= int(step) <= hi - lo + 1:
            raise InvalidCadenceError(f"Invalid step for {name} in cadence {expr!r}: {raw!r}")
        return

    if not raw.isdigit():
        raise InvalidCadenceError(f"Invalid {name} in cadence {expr!r}: {raw!r}")
    if not lo <= int(raw) <= hi:
        raise InvalidCadenceError(
            f"{name} out of range ({lo}-{hi}) in cadence {expr!r}: {raw!r}"
        )


def parse_cadence(expr: str | Cadence) -> Cadence:
    if isinstance(expr, Cadence):
        return expr

    parts = (expr or "").split()
    if len(parts) != len(_FIELDS):
        raise InvalidCadenceError(
            f"Cadence must have {len(_FIELDS)} space-separated fields, got {len(parts)}: {expr!r}"
        )

    for raw, (name, lo, hi) in zip(parts, _FIELDS):
        _check_field(raw, name, lo, hi, expr)

    normalised = " ".join(parts)
    if not croniter.is_valid(normalised):
        raise InvalidCadenceError(f"Invalid cadence: {expr!r}")
    return Cadence(normalised)
