"""Summary statistics over a ranking run's scores, for the HR ranked view."""

import math
import statistics
from collections.abc import Iterable
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ScoreStatistics:
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {f"scores/{k}": v for k, v in asdict(self).items()}


def _valid(values: Iterable[float | None]) -> list[float]:
    return [float(v) for v in values if v is not None and not math.isnan(v)]


def compute_statistics(values: Iterable[float | None]) -> ScoreStatistics:
    """Min, max, mean, median, and population standard deviation, rounded to 0.1."""
    valid = _valid(values)
    if not valid:
        return ScoreStatistics()
    return ScoreStatistics(
        count=len(valid),
        min=round(min(valid), 1),
        max=round(max(valid), 1),
        mean=round(statistics.fmean(valid), 1),
        median=round(statistics.median(valid), 1),
        std_dev=round(statistics.pstdev(valid), 1),
    )


def percentile_rank(value: float, values: Iterable[float | None]) -> int:
    """Share of scores strictly below ``value``, as a whole percentage."""
    valid = _valid(values)
    if not valid or value is None or math.isnan(value):
        return 0
    below = sum(1 for v in valid if v < value)
    return round(below / len(valid) * 100)


def score_distribution(values: Iterable[float | None], bucket_count: int = 5) -> list[dict]:
    """Histogram buckets spanning min..max, labelled "start-end"."""
    valid = _valid(values)
    if not valid or bucket_count < 1:
        return []
    low, high = min(valid), max(valid)
    size = (high - low) / bucket_count
    buckets = []
    for i in range(bucket_count):
        start = low + i * size
        end = high if i == bucket_count - 1 else start + size
        if i == bucket_count - 1:
            count = sum(1 for v in valid if start <= v <= end)
        else:
            count = sum(1 for v in valid if start <= v < end)
        buckets.append({"range": f"{round(start)}-{round(end)}", "count": count})
    return buckets
