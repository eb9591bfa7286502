import math
from bisect import bisect_left
from collections.abc import Iterable
from collections.abc import Sequence
from datetime import date

from abacus.api.schemas.history import DailyCount


# Percentiles of the log-scaled positive counts that separate buckets 1..9.
PERCENTILE_CUTS = (10, 25, 40, 55, 70, 80, 88, 94)
MAX_INTENSITY = len(PERCENTILE_CUTS) + 1


def percentile(sorted_values: Sequence[float], percent: float) -> float:
    """Return the nearest-rank percentile of an ascending, non-empty sequence."""

    index = math.ceil((percent / 100) * len(sorted_values)) - 1
    return sorted_values[max(0, index)]


def log_scale(count: int) -> float:
    return math.log10(count + 1)


def compute_thresholds(counts: Iterable[int]) -> list[float]:
    """Compute log-scale cut points from the strictly positive counts.

    Returns an empty list when no count is positive.
    """

    log_counts = sorted(log_scale(count) for count in counts if count > 0)
    if not log_counts:
        return []
    return [percentile(log_counts, cut) for cut in PERCENTILE_CUTS]


def bucket_for(count: int, thresholds: Sequence[float]) -> int:
    """Map a count to 0..9 given the cut points from `compute_thresholds`."""

    if count <= 0 or not thresholds:
        return 0
    return min(bisect_left(thresholds, log_scale(count)) + 1, MAX_INTENSITY)


def calculate_intensity_map(series: Sequence[DailyCount]) -> dict[date, int]:
    """Assign every date of the series an intensity bucket in range 0..9."""

    thresholds = compute_thresholds(item.count for item in series)
    return {item.date: bucket_for(item.count, thresholds) for item in series}
