"""API routes consumed by the assistant orchestration layer.

No model is called here: the orchestrator fetches catalog text for its
prompt, validates the pairings the model proposed, and runs answer-mode
queries through these endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from certus.ai.answer import AnswerResult, execute_answer
from certus.ai.catalog_prompt import build_catalog_prompt
from certus.ai.pairings import (
    BuilderResponse,
    PairingValidation,
    record_unmatched_terms,
    validate_pairings,
)
from certus.ai.sanitize import AssistantMode, detect_mode, sanitize_input
from certus.executor.schemas import DateRange

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


class AnswerRequest(BaseModel):
    data_asset: str
    parameters: dict = Field(default_factory=dict)
    date_range: Optional[DateRange] = None
    consultant_id: Optional[str] = None


class ValidatePairingsRequest(BuilderResponse):
    """The assistant's builder response plus the query that produced it."""

    user_query: str = ""


class ValidatePairingsResponse(PairingValidation):
    unmatched_recorded: int = 0


class DetectModeRequest(BaseModel):
    text: str


class DetectModeResponse(BaseModel):
    mode: AssistantMode
    sanitized: str


@router.get("/catalog")
async def get_catalog_prompt():
    """Catalog sections of the assistant system prompt."""
    return {"catalog": build_catalog_prompt()}


@router.post("/detect-mode", response_model=DetectModeResponse)
async def detect_query_mode(request: DetectModeRequest):
    text = sanitize_input(request.text)
    return DetectModeResponse(mode=detect_mode(text), sanitized=text)


@router.post("/pairings/validate", response_model=ValidatePairingsResponse)
def validate_widget_pairings(request: ValidatePairingsRequest):
    """Check proposed pairings and log unmatched terms for review."""
    validation = validate_pairings(request.pairings)
    recorded = record_unmatched_terms(
        request.unmatched_terms, sanitize_input(request.user_query)
    )
    return ValidatePairingsResponse(
        accepted=validation.accepted,
        rejected=validation.rejected,
        unmatched_recorded=recorded,
    )


@router.post("/answer", response_model=AnswerResult)
async def answer_question(request: AnswerRequest):
    """Run an answer-mode query. Data layer failures come back in `error`."""
    return await execute_answer(
        request.data_asset,
        request.parameters,
        request.date_range,
        request.consultant_id,
    )
