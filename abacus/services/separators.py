"""Weaving month boundary paths for the contribution graph.

Weeks straddle month ends, so a boundary between two months is a column edge
that can shift by one column from row to row. Each boundary is drawn as one
continuous path that steps sideways with rounded corners wherever it moves to
another column.
"""

from collections import defaultdict
from collections.abc import Sequence

from abacus.services.colors import with_opacity
from abacus.services.layout import Cell
from abacus.services.layout import DAYS_PER_WEEK
from abacus.services.layout import Dimensions
from abacus.services.svg import attr
from abacus.services.svg import fmt


CELL_BORDER_RADIUS = 2


def group_by_month(cells: Sequence[Cell]) -> dict[tuple[int, int], list[Cell]]:
    months: dict[tuple[int, int], list[Cell]] = defaultdict(list)
    for cell in cells:
        months[(cell.day.year, cell.day.month)].append(cell)
    return dict(sorted(months.items()))


def boundary_x(
    prev_in_row: Sequence[Cell],
    curr_in_row: Sequence[Cell],
    left_margin: int,
    cell_size: int,
    cell_gap: int,
) -> float | None:
    """Return the boundary x for one row, or None when neither month is in it."""

    if prev_in_row:
        right_edge = max(cell.x for cell in prev_in_row) + cell_size
        return left_margin + right_edge + cell_gap / 2
    if curr_in_row:
        return left_margin + min(cell.x for cell in curr_in_row) - cell_gap / 2
    return None


def route_boundary(
    prev_cells: Sequence[Cell],
    curr_cells: Sequence[Cell],
    dims: Dimensions,
    cell_size: int,
    cell_gap: int,
) -> list[str]:
    """Return path commands for the boundary between two adjacent months."""

    pitch = cell_size + cell_gap
    radius = CELL_BORDER_RADIUS + cell_gap / 2
    commands: list[str] = []
    current_x: float | None = None

    for row in range(DAYS_PER_WEEK):
        row_y = row * pitch
        target_x = boundary_x(
            [cell for cell in prev_cells if cell.y == row_y],
            [cell for cell in curr_cells if cell.y == row_y],
            dims.left_margin,
            cell_size,
            cell_gap,
        )
        if target_x is None:
            continue

        if current_x is None:
            commands.append(f"M {fmt(target_x)} {fmt(dims.top_margin)}")
        elif target_x != current_x:
            step_y = dims.top_margin + row_y - cell_gap / 2
            direction = 1 if target_x > current_x else -1
            commands.append(f"L {fmt(current_x)} {fmt(step_y - radius)}")
            commands.append(
                f"Q {fmt(current_x)} {fmt(step_y)} "
                f"{fmt(current_x + direction * radius)} {fmt(step_y)}"
            )
            commands.append(f"L {fmt(target_x - direction * radius)} {fmt(step_y)}")
            commands.append(
                f"Q {fmt(target_x)} {fmt(step_y)} "
                f"{fmt(target_x)} {fmt(step_y + radius)}"
            )
        current_x = target_x

    if current_x is not None:
        bottom_y = dims.top_margin + (DAYS_PER_WEEK - 1) * pitch + cell_size
        commands.append(f"L {fmt(current_x)} {fmt(bottom_y)}")
    return commands


def render_month_separators(
    cells: Sequence[Cell],
    dims: Dimensions,
    cell_size: int,
    cell_gap: int,
    text_color: str,
) -> str:
    months = group_by_month(cells)
    if len(months) < 2:
        return ""

    stroke = attr(with_opacity(text_color))
    month_cells = list(months.values())
    paths: list[str] = []
    for prev_cells, curr_cells in zip(month_cells, month_cells[1:]):
        commands = route_boundary(prev_cells, curr_cells, dims, cell_size, cell_gap)
        if not commands:
            continue
        paths.append(
            f'<path d="{" ".join(commands)}" fill="none" stroke="{stroke}" '
            'stroke-width="0.5" stroke-linecap="round"/>'
        )
    return "\n".join(paths)
