"""Error types for the data layer.

Every error carries a machine-readable `kind` and a message that is safe to
show to callers. Storage details never leak into `message`; the original
exception stays reachable through `__cause__`.
"""

from typing import Any, Optional


class DataLayerError(Exception):
    """Base error for asset lookup, shaping and widget resolution failures."""

    kind = "data_layer_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class AssetNotFoundError(DataLayerError):
    """The asset key is unknown or the asset is inactive."""

    kind = "asset_not_found"

    def __init__(self, asset_key: str):
        self.asset_key = asset_key
        super().__init__(f"Data asset '{asset_key}' not found")


class UnsupportedShapeError(DataLayerError):
    """The requested shape is not among the asset's output shapes."""

    kind = "unsupported_shape"

    def __init__(self, asset_key: str, shape: Any, supported: Optional[list] = None):
        self.asset_key = asset_key
        self.shape = getattr(shape, "value", shape)
        self.supported = [getattr(s, "value", s) for s in (supported or [])]
        super().__init__(
            f"Data asset '{asset_key}' does not support shape '{self.shape}' "
            f"(supported: {', '.join(self.supported) or 'none'})"
        )

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["asset_key"] = self.asset_key
        d["shape"] = self.shape
        d["supported"] = self.supported
        return d


class InvalidFilterError(DataLayerError):
    """A filter or query parameter is malformed."""

    kind = "invalid_filter"

    def __init__(self, field: str, value: Any = None, reason: str = "invalid value"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid filter '{field}': {reason}")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["field"] = self.field
        return d


class QueryExecutionError(DataLayerError):
    """The row fetch failed, timed out, or produced a malformed payload."""

    kind = "query_execution_failed"

    def __init__(self, asset_key: str, cause: str = "query failed"):
        self.asset_key = asset_key
        self.cause = cause
        super().__init__(f"Query for data asset '{asset_key}' failed")


class UnknownWidgetTypeError(DataLayerError):
    """The widget type has no registry entry."""

    kind = "unknown_widget_type"

    def __init__(self, widget_type: str):
        self.widget_type = widget_type
        super().__init__(f"Unknown widget type '{widget_type}'")
