"""Answer mode: run the assistant's chosen asset and phrase the result."""

import logging
from typing import Any, Optional

from pydantic import BaseModel

from certus.executor.errors import DataLayerError
from certus.executor.query_executor import DataAssetQueryExecutor, get_query_executor
from certus.executor.schemas import DateRange, QueryFilters, QueryParameters
from certus.shapes.formatting import format_value
from certus.shapes.schemas import ShapeKind

logger = logging.getLogger(__name__)


class AnswerResult(BaseModel):
    value: str
    error: Optional[str] = None


async def execute_answer(
    asset_key: str,
    parameters: Optional[dict[str, Any]] = None,
    date_range: Optional[DateRange] = None,
    consultant_id: Optional[str] = None,
    executor: Optional[DataAssetQueryExecutor] = None,
) -> AnswerResult:
    """Query `asset_key` as a single value and render "Label: value".

    Data layer failures come back in `error` so the assistant can tell the
    user; anything else propagates.
    """
    parameters = parameters or {}
    executor = executor or get_query_executor()
    params = QueryParameters(
        asset_key=asset_key,
        shape=ShapeKind.SINGLE_VALUE,
        filters=QueryFilters(
            date_range=date_range,
            consultant_id=consultant_id,
            additional_filters=parameters.get("filters") or {},
        ),
    )
    try:
        result = await executor.query(params)
    except DataLayerError as e:
        logger.warning(f"Answer query for {asset_key} failed: {e.kind}")
        return AnswerResult(value="", error=e.message)

    data = result.data
    return AnswerResult(value=f"{data.label}: {format_value(data.value, data.format)}")
