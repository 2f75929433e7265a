"""API routes for resolving a stored dashboard's widgets."""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import ValidationError

from certus.api.errors import http_error
from certus.dashboards.store import load_dashboard_widgets
from certus.executor.errors import InvalidFilterError
from certus.executor.schemas import DateRange
from certus.widgets.resolver import resolve_widgets
from certus.widgets.schemas import DEFAULT_DATE_PRESET, FilterContext, ResolvedWidget

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


def _context(
    start: Optional[str],
    end: Optional[str],
    preset: str,
    scope: str,
    consultant_id: Optional[str],
    team_id: Optional[str],
    region_id: Optional[str],
) -> FilterContext:
    if (start is None) != (end is None):
        raise http_error(
            InvalidFilterError("date_range", None, "start and end must be given together")
        )
    extra = {
        "hierarchy_scope": scope,
        "consultant_id": consultant_id,
        "team_id": team_id,
        "region_id": region_id,
    }
    try:
        if start is not None:
            return FilterContext(date_range=DateRange(start=start, end=end), **extra)
        return FilterContext.from_preset(preset, **extra)
    except ValidationError as e:
        raise http_error(InvalidFilterError("hierarchy_scope", scope, str(e.errors()[0]["msg"])))


@router.get("/{dashboard_id}/widgets", response_model=list[ResolvedWidget])
def get_dashboard_widgets(
    dashboard_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    preset: str = DEFAULT_DATE_PRESET,
    scope: str = "my_team",
    consultant_id: Optional[str] = None,
    team_id: Optional[str] = None,
    region_id: Optional[str] = None,
):
    """Resolve every widget on a dashboard; failures are reported per widget."""
    context = _context(start, end, preset, scope, consultant_id, team_id, region_id)
    widgets = load_dashboard_widgets(dashboard_id)
    return resolve_widgets(widgets, context)
