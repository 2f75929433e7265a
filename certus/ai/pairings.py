"""Structured assistant output: builder-mode widget pairings.

The assistant proposes (asset, widget type) pairings; nothing it proposes
reaches a dashboard until every pairing passes the compatibility check.
Terms the assistant could not map to an asset are logged for catalog
curation.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from certus.data_assets.registry import DataAssetRegistry, get_data_asset_registry
from certus.executor import db
from certus.executor.errors import AssetNotFoundError, DataLayerError
from certus.widgets.compatibility import ensure_compatible
from certus.widgets.registry import WidgetRegistry, get_widget_registry

logger = logging.getLogger(__name__)

MAX_PAIRINGS = 6


class PairingConfig(BaseModel):
    """Display config proposed for a widget. Unlisted keys pass through."""

    model_config = ConfigDict(extra="allow")

    title: str
    comparison: Optional[bool] = None
    format: Optional[str] = None
    color_scheme: Optional[Literal["blue", "green", "purple", "orange", "teal"]] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    orientation: Optional[Literal["vertical", "horizontal"]] = None
    chart_type: Optional[Literal["line", "area", "donut", "pie"]] = None


class SuggestedLayout(BaseModel):
    w: int = Field(..., ge=2, le=12)
    h: int = Field(..., ge=2, le=8)


class WidgetPairing(BaseModel):
    data_asset: str = Field(..., description="asset_key from the catalog")
    widget_type: str = Field(..., description="Widget type key from the widget registry")
    parameters: dict[str, Any] = Field(default_factory=dict)
    widget_config: PairingConfig
    suggested_layout: SuggestedLayout


class BuilderResponse(BaseModel):
    """What the assistant returns in builder mode."""

    mode: Literal["builder"] = "builder"
    reasoning: str = ""
    suggestion: str = ""
    pairings: list[WidgetPairing] = Field(..., min_length=1, max_length=MAX_PAIRINGS)
    unmatched_terms: list[str] = Field(default_factory=list)


class PairingRejection(BaseModel):
    index: int
    data_asset: str
    widget_type: str
    error: dict[str, Any]


class PairingValidation(BaseModel):
    accepted: list[WidgetPairing] = Field(default_factory=list)
    rejected: list[PairingRejection] = Field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return not self.rejected


def validate_pairings(
    pairings: list[WidgetPairing],
    registry: Optional[DataAssetRegistry] = None,
    widget_registry: Optional[WidgetRegistry] = None,
) -> PairingValidation:
    """Split proposed pairings into accepted and rejected (with reasons)."""
    registry = registry or get_data_asset_registry()
    widget_registry = widget_registry or get_widget_registry()
    result = PairingValidation()

    for index, pairing in enumerate(pairings):
        try:
            asset = registry.get_asset(pairing.data_asset)
            if asset is None or not asset.is_active:
                raise AssetNotFoundError(pairing.data_asset)
            ensure_compatible(asset, pairing.widget_type, widget_registry)
        except DataLayerError as e:
            logger.info(
                f"Rejected pairing {pairing.data_asset} -> {pairing.widget_type}: {e}"
            )
            result.rejected.append(
                PairingRejection(
                    index=index,
                    data_asset=pairing.data_asset,
                    widget_type=pairing.widget_type,
                    error=e.to_dict(),
                )
            )
            continue
        result.accepted.append(pairing)

    return result


def record_unmatched_terms(terms: list[str], user_query: str = "") -> int:
    """Store unmatched terms for review. Returns how many were recorded."""
    seen: set[str] = set()
    cleaned = []
    for term in terms:
        term = term.strip()
        if term and term.lower() not in seen:
            seen.add(term.lower())
            cleaned.append(term)
    if not cleaned:
        return 0

    db.init_db()
    now = datetime.now(timezone.utc).isoformat()
    for term in cleaned:
        db.execute(
            "INSERT INTO unmatched_terms (unmatched_term, user_query, created_at) "
            "VALUES (%s, %s, %s)",
            (term, user_query, now),
        )
    logger.info(f"Recorded {len(cleaned)} unmatched terms")
    return len(cleaned)
