import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Response
from sqlalchemy.orm import Session

from abacus.core.periods import Period
from abacus.core.periods import today_in
from abacus.core.query import get_period
from abacus.core.query import parse_bool
from abacus.db import get_db
from abacus.services.graph_service import RenderOptions
from abacus.services.graph_service import generate_contribution_graph
from abacus.services.history_service import get_commands_per_day


logger = logging.getLogger(__name__)

router = APIRouter()


def get_render_options(
    base_color: str | None = Query(default=None, alias="baseColor"),
    color: str | None = Query(default=None),
    text_color: str | None = Query(default=None, alias="textColor"),
    cell_background: str | None = Query(default=None, alias="cellBackground"),
    cell_size: int | None = Query(default=None, alias="cellSize", ge=0),
    cell_gap: int | None = Query(default=None, alias="cellGap", ge=0),
    show_month_labels: str | None = Query(default=None, alias="showMonthLabels"),
    show_day_labels: str | None = Query(default=None, alias="showDayLabels"),
    show_footer: str | None = Query(default=None, alias="showFooter"),
) -> RenderOptions:
    """Collect render options from query parameters, keeping defaults for the rest."""

    defaults = RenderOptions()
    overrides = {
        "base_color": base_color or color,
        "text_color": text_color,
        "cell_background": cell_background,
        "cell_size": cell_size,
        "cell_gap": cell_gap,
    }
    return RenderOptions(
        **{name: value for name, value in overrides.items() if value is not None},
        show_month_labels=parse_bool(show_month_labels, defaults.show_month_labels),
        show_day_labels=parse_bool(show_day_labels, defaults.show_day_labels),
        show_footer=parse_bool(show_footer, defaults.show_footer),
    )


@router.get("/graph", response_class=Response)
def contribution_graph(
    period: Period = Depends(get_period),
    options: RenderOptions = Depends(get_render_options),
    db: Session = Depends(get_db),
) -> Response:
    """Return the contribution graph for the period as an SVG document."""

    series = get_commands_per_day(db, period)
    try:
        svg = generate_contribution_graph(
            series, options, today=today_in(period.timezone)
        )
    except ValueError as exc:
        logger.info("Rejected graph colors: %s", exc)
        raise HTTPException(status_code=400, detail=f"Invalid color: {exc}") from exc

    return Response(content=svg, media_type="image/svg+xml")
