from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from datetime import timedelta

from abacus.api.schemas.history import DailyCount


DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class Cell:
    """One calendar day placed on the week/day grid (pixel offsets)."""

    day: date
    count: int
    x: int
    y: int
    intensity: int


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int
    left_margin: int
    top_margin: int
    right_margin: int
    bottom_margin: int
    graph_width: int
    graph_height: int


def weekday_index(day: date) -> int:
    """Day-of-week row with Sunday as 0 and Saturday as 6."""

    return (day.weekday() + 1) % DAYS_PER_WEEK


def first_sunday(day: date) -> date:
    return day - timedelta(days=weekday_index(day))


def build_cells(
    series: Sequence[DailyCount],
    intensity_map: Mapping[date, int],
    cell_size: int,
    cell_gap: int,
) -> list[Cell]:
    """Expand a sparse series into one cell per day of the covered weeks.

    The grid starts on the Sunday on or before the earliest date and ends on
    the latest date. Days missing from the series get a zero count.
    """

    counts_by_date = {item.date: item.count for item in series}
    start_date = first_sunday(min(counts_by_date))
    end_date = max(counts_by_date)
    pitch = cell_size + cell_gap

    cells: list[Cell] = []
    week_index = 0
    current_day = start_date
    while current_day <= end_date:
        row = weekday_index(current_day)
        cells.append(
            Cell(
                day=current_day,
                count=counts_by_date.get(current_day, 0),
                x=week_index * pitch,
                y=row * pitch,
                intensity=intensity_map.get(current_day, 0),
            )
        )
        if row == DAYS_PER_WEEK - 1:
            week_index += 1
        current_day += timedelta(days=1)

    return cells


def calculate_dimensions(
    cells: Sequence[Cell],
    cell_size: int,
    cell_gap: int,
    show_day_labels: bool,
    show_month_labels: bool,
    show_footer: bool,
) -> Dimensions:
    left_margin = 30 if show_day_labels else 10
    top_margin = 20 if show_month_labels else 10
    bottom_margin = 35 if show_footer else 10
    right_margin = 10

    graph_width = max(cell.x for cell in cells) + cell_size + cell_gap
    graph_height = DAYS_PER_WEEK * (cell_size + cell_gap)

    return Dimensions(
        width=left_margin + graph_width + right_margin,
        height=top_margin + graph_height + bottom_margin,
        left_margin=left_margin,
        top_margin=top_margin,
        right_margin=right_margin,
        bottom_margin=bottom_margin,
        graph_width=graph_width,
        graph_height=graph_height,
    )
