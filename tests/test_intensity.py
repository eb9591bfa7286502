from datetime import date
from datetime import timedelta

from abacus.api.schemas.history import DailyCount
from abacus.services.intensity import bucket_for
from abacus.services.intensity import calculate_intensity_map
from abacus.services.intensity import compute_thresholds
from abacus.services.intensity import percentile


def make_series(counts: list[int], start: date = date(2024, 1, 1)) -> list[DailyCount]:
    return [
        DailyCount(date=start + timedelta(days=offset), count=count)
        for offset, count in enumerate(counts)
    ]


def test_percentile_uses_nearest_rank() -> None:
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]

    assert percentile(values, 10) == 1
    assert percentile(values, 25) == 3
    assert percentile(values, 94) == 10


def test_percentile_clamps_index_to_first_element() -> None:
    assert percentile([1, 2], 0) == 1
    assert percentile([5], 94) == 5


def test_compute_thresholds_empty_without_positive_counts() -> None:
    assert compute_thresholds([0, 0, 0]) == []


def test_all_zero_series_maps_to_zero() -> None:
    series = make_series([0, 0, 0])

    assert set(calculate_intensity_map(series).values()) == {0}


def test_skewed_counts_get_monotonic_buckets() -> None:
    series = make_series([0, 1, 10, 100, 1000])

    intensity_map = calculate_intensity_map(series)

    assert [intensity_map[item.date] for item in series] == [0, 1, 3, 4, 6]


def test_equal_counts_share_a_bucket() -> None:
    series = make_series([5, 5, 5, 0])

    intensity_map = calculate_intensity_map(series)

    assert [intensity_map[item.date] for item in series] == [1, 1, 1, 0]


def test_top_of_distribution_reaches_highest_bucket() -> None:
    series = make_series(list(range(1, 101)))

    intensity_map = calculate_intensity_map(series)

    assert intensity_map[series[-1].date] == 9
    assert intensity_map[series[0].date] == 1
    assert min(intensity_map.values()) >= 1


def test_zero_count_is_zero_regardless_of_thresholds() -> None:
    thresholds = compute_thresholds([3, 7, 50])

    assert bucket_for(0, thresholds) == 0
    assert bucket_for(3, thresholds) >= 1
