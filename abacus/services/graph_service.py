import logging
from collections.abc import Callable
from collections.abc import Sequence
from datetime import date
from datetime import timedelta

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel
from pydantic import Field

from abacus.api.schemas.history import DailyCount
from abacus.services.colors import create_color_scale
from abacus.services.intensity import calculate_intensity_map
from abacus.services.layout import Cell
from abacus.services.layout import Dimensions
from abacus.services.layout import build_cells
from abacus.services.layout import calculate_dimensions
from abacus.services.separators import render_month_separators
from abacus.services.svg import attr
from abacus.services.svg import fmt


logger = logging.getLogger(__name__)

DAY_LABELS = ("S", "M", "T", "W", "T", "F", "S")
MONTH_LABELS = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)
LEGEND_INTENSITIES = (0, 1, 3, 5, 6, 7, 8, 9)
CELL_RADIUS = 2
FONT = 'font-size="10" font-family="monospace"'


class RenderOptions(BaseModel):
    """Display options for the contribution graph."""

    cell_size: int = Field(default=12, ge=0)
    cell_gap: int = Field(default=3, ge=0)
    show_month_labels: bool = True
    show_day_labels: bool = True
    show_footer: bool = True
    base_color: str = "#fb7185"
    text_color: str = "#57606a"
    cell_background: str = "#ebedf0"


def empty_year(today: date) -> list[DailyCount]:
    """Zero-count series from one year before `today` through `today`."""

    current_day = today - relativedelta(years=1)
    series: list[DailyCount] = []
    while current_day <= today:
        series.append(DailyCount(date=current_day, count=0))
        current_day += timedelta(days=1)
    return series


def render_day_labels(
    dims: Dimensions, cell_size: int, cell_gap: int, text_color: str
) -> str:
    x = dims.left_margin - 18
    labels = []
    for row, label in enumerate(DAY_LABELS):
        y = dims.top_margin + row * (cell_size + cell_gap) + cell_size / 2
        labels.append(
            f'<text x="{fmt(x)}" y="{fmt(y)}" fill="{attr(text_color)}" {FONT} '
            f'dominant-baseline="middle">{label}</text>'
        )
    return "".join(labels)


def month_label_positions(
    cells: Sequence[Cell], left_margin: int
) -> list[tuple[str, int]]:
    """Return `(label, x)` for every month change along the grid.

    The first label is dropped when the grid starts after the 7th of its
    month, since there is not enough room before the next label.
    """

    positions: list[tuple[str, int, int]] = []
    current_month = None
    for cell in cells:
        if cell.day.month != current_month:
            current_month = cell.day.month
            label = MONTH_LABELS[current_month - 1]
            positions.append((label, left_margin + cell.x, cell.day.day))

    if positions and positions[0][2] > 7:
        positions.pop(0)
    return [(label, x) for label, x, _ in positions]


def render_month_labels(
    cells: Sequence[Cell], left_margin: int, text_color: str
) -> str:
    return "".join(
        f'<text x="{fmt(x)}" y="12" fill="{attr(text_color)}" {FONT}>{label}</text>'
        for label, x in month_label_positions(cells, left_margin)
    )


def render_cells(
    cells: Sequence[Cell],
    dims: Dimensions,
    cell_size: int,
    color_for: Callable[[int], str],
) -> str:
    return "\n".join(
        f'<rect x="{fmt(dims.left_margin + cell.x)}" '
        f'y="{fmt(dims.top_margin + cell.y)}" '
        f'width="{fmt(cell_size)}" height="{fmt(cell_size)}" '
        f'fill="{attr(color_for(cell.intensity))}" rx="{CELL_RADIUS}"/>'
        for cell in cells
    )


def render_footer(
    series: Sequence[DailyCount],
    dims: Dimensions,
    cell_size: int,
    cell_gap: int,
    text_color: str,
    color_for: Callable[[int], str],
) -> str:
    """Render the Less/More legend and the totals summary below the grid."""

    swatch_top = dims.top_margin + dims.graph_height + 10
    text_y = swatch_top + cell_size / 2
    fill = attr(text_color)

    parts = [
        f'<text x="{fmt(dims.left_margin)}" y="{fmt(text_y)}" fill="{fill}" {FONT} '
        f'dominant-baseline="middle">Less</text>'
    ]
    swatch_x = dims.left_margin + 28
    for intensity in LEGEND_INTENSITIES:
        parts.append(
            f'<rect x="{fmt(swatch_x)}" y="{fmt(swatch_top)}" width="{fmt(cell_size)}" '
            f'height="{fmt(cell_size)}" fill="{attr(color_for(intensity))}" '
            f'rx="{CELL_RADIUS}"/>'
        )
        swatch_x += cell_size + cell_gap
    parts.append(
        f'<text x="{fmt(swatch_x + 3)}" y="{fmt(text_y)}" fill="{fill}" {FONT} '
        f'dominant-baseline="middle">More</text>'
    )

    total = sum(item.count for item in series)
    parts.append(
        f'<text x="{fmt(dims.width - dims.right_margin)}" y="{fmt(text_y)}" '
        f'fill="{fill}" {FONT} dominant-baseline="middle" text-anchor="end">'
        f"{total} commands over {len(series)} days</text>"
    )
    return "".join(parts)


def generate_contribution_graph(
    series: Sequence[DailyCount],
    options: RenderOptions | None = None,
    *,
    today: date | None = None,
) -> str:
    """Render a GitHub-style contribution graph SVG from daily command counts.

    An empty series is replaced by a year of zero-count days ending `today`
    (defaults to the current date) so a full grid is always drawn.

    Raises:
        ValueError: If `base_color` or `cell_background` cannot be parsed.
    """

    options = options or RenderOptions()
    if not series:
        series = empty_year(today or date.today())

    cell_size = options.cell_size
    cell_gap = options.cell_gap

    intensity_map = calculate_intensity_map(series)
    cells = build_cells(series, intensity_map, cell_size, cell_gap)
    dims = calculate_dimensions(
        cells,
        cell_size,
        cell_gap,
        show_day_labels=options.show_day_labels,
        show_month_labels=options.show_month_labels,
        show_footer=options.show_footer,
    )
    color_for = create_color_scale(options.base_color, options.cell_background)

    parts = [
        f'<svg width="{dims.width}" height="{dims.height}" '
        'xmlns="http://www.w3.org/2000/svg">'
    ]
    if options.show_day_labels:
        parts.append(render_day_labels(dims, cell_size, cell_gap, options.text_color))
    if options.show_month_labels:
        parts.append(render_month_labels(cells, dims.left_margin, options.text_color))
    parts.append(render_cells(cells, dims, cell_size, color_for))
    parts.append(
        render_month_separators(cells, dims, cell_size, cell_gap, options.text_color)
    )
    if options.show_footer:
        parts.append(
            render_footer(
                series, dims, cell_size, cell_gap, options.text_color, color_for
            )
        )
    parts.append("</svg>")

    logger.debug("Rendered contribution graph with %d cells", len(cells))
    return "".join(parts)
