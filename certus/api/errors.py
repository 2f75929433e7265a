"""Map data layer errors onto HTTP responses."""

from fastapi import HTTPException

from certus.executor.errors import (
    AssetNotFoundError,
    DataLayerError,
    InvalidFilterError,
    QueryExecutionError,
    UnknownWidgetTypeError,
    UnsupportedShapeError,
)

STATUS_CODES: dict[type, int] = {
    AssetNotFoundError: 404,
    UnknownWidgetTypeError: 404,
    UnsupportedShapeError: 422,
    InvalidFilterError: 422,
    QueryExecutionError: 503,
}


def http_error(error: DataLayerError) -> HTTPException:
    """HTTPException whose detail is {"error": kind, "message": ...}."""
    status_code = STATUS_CODES.get(type(error), 500)
    return HTTPException(status_code=status_code, detail=error.to_dict())
