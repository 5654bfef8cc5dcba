# hrm/services/scoring.py
"""
KPI scoring: pure functions, no I/O.

Each configured criterion is normalised to 0-100 against its scale, then
weighted by its percentage; the weighted values add up to a 0-100 total.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, NamedTuple, Sequence


class ScoringItem(NamedTuple):
    criterion_id: int
    weight: float
    scale_max: float


class RawScore(NamedTuple):
    criterion_id: int
    score_raw: float


class ValidationResult(NamedTuple):
    valid: bool
    errors: List[str]


def round2(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def score(items: Sequence[ScoringItem], raw: Iterable[RawScore]) -> float:
    by_criterion = {r.criterion_id: r.score_raw for r in raw}
    total = 0.0
    for item in items:
        score_raw = by_criterion.get(item.criterion_id)
        if score_raw is None:
            # validate() rejects this before scoring; count it as 0 here
            continue
        normalized = (score_raw / item.scale_max) * 100
        total += normalized * (item.weight / 100)
    return round2(total)


def validate(items: Sequence[ScoringItem], raw: Sequence[RawScore]) -> ValidationResult:
    """Collect every violation instead of stopping at the first one."""
    errors = []
    configured = {item.criterion_id: item for item in items}

    seen = {}
    for r in raw:
        seen[r.criterion_id] = seen.get(r.criterion_id, 0) + 1

    for criterion_id in configured:
        if criterion_id not in seen:
            errors.append(f"Missing score for criterion {criterion_id}")

    for criterion_id, count in seen.items():
        if criterion_id in configured and count > 1:
            errors.append(f"Duplicate score for criterion {criterion_id}")

    for r in raw:
        item = configured.get(r.criterion_id)
        if item is None:
            errors.append(f"Unknown criterion {r.criterion_id}")
            continue
        if not math.isfinite(r.score_raw):
            errors.append(f"Score for criterion {r.criterion_id} must be a finite number")
        elif r.score_raw < 0 or r.score_raw > item.scale_max:
            errors.append(
                f"Score for criterion {r.criterion_id} must be between 0 and {item.scale_max:g}"
            )

    return ValidationResult(valid=not errors, errors=errors)
