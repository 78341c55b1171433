"""Assessment arithmetic: weighted subject averages and performance bands."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from app.core.enums import PerformanceLevel

ZERO = Decimal("0")


def weighted_average(results: Iterable[Tuple[Decimal, Decimal]]) -> Decimal:
    """
    sum(score * weight) / sum(weight) over (score, weight) pairs, to 2 dp.

    Weights need not add up to 100. No assessments (or only zero weights)
    gives 0, which callers read as "no data".
    """
    weighted = ZERO
    weights = ZERO
    for score, weight in results:
        score = score if isinstance(score, Decimal) else Decimal(str(score))
        weight = weight if isinstance(weight, Decimal) else Decimal(str(weight))
        weighted += score * weight
        weights += weight
    if weights == 0:
        return Decimal("0.00")
    return (weighted / weights).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def performance_level(score: Decimal) -> PerformanceLevel:
    if score >= 80:
        return PerformanceLevel.excellent
    if score >= 70:
        return PerformanceLevel.good
    if score >= 50:
        return PerformanceLevel.average
    return PerformanceLevel.needs_improvement


def mean(values: Iterable[Decimal]) -> Decimal:
    values = list(values)
    if not values:
        return Decimal("0.00")
    return (sum(values, ZERO) / len(values)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
