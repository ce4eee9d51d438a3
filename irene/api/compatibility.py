"""
Irene — Compatibility API

Stateless endpoints over the scoring engine and the matching service.
Callers send every profile snapshot in the request body; match records are
returned for the caller to persist.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, status

from irene.config import get_settings
from irene.schemas.match import (
    CompatibilityResult,
    FeedRequest,
    FeedResponse,
    MatchActionRequest,
    MatchGenerateRequest,
    MatchGenerateResponse,
    MatchRecord,
    ScoreRequest,
)
from irene.services.compatibility_service import CompatibilityScorer, ScoringWeights
from irene.services.matching_service import MatchingService

logger = structlog.get_logger("irene.api.compatibility")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_scorer: CompatibilityScorer | None = None
_matching_service: MatchingService | None = None


def _get_scorer() -> CompatibilityScorer:
    global _scorer
    if _scorer is None:
        _scorer = CompatibilityScorer(ScoringWeights.from_settings(get_settings()))
    return _scorer


def _get_matching_service() -> MatchingService:
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService(scorer=_get_scorer())
    return _matching_service


# ──────────────────────────────────────────────────────────────────────────────
# POST /score — Score one pair
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/score",
    response_model=CompatibilityResult,
    summary="Score the compatibility of two profiles",
)
async def score_pair(body: ScoreRequest) -> CompatibilityResult:
    """Return the 0-100 compatibility score, up to three reasons and the
    per-factor breakdown for two profile snapshots."""
    result = _get_scorer().score(body.user_a, body.user_b, as_of=body.as_of)
    logger.info(
        "score_pair_complete",
        user_a_id=body.user_a.user_id,
        user_b_id=body.user_b.user_id,
        score=result.score,
    )
    return result


# ──────────────────────────────────────────────────────────────────────────────
# POST /matches — Batch match generation
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/matches",
    response_model=MatchGenerateResponse,
    summary="Generate pending matches from a candidate pool",
)
async def generate_matches(body: MatchGenerateRequest) -> MatchGenerateResponse:
    """Score the user against every candidate, keep those at or above the
    minimum compatibility, and return pending match records best-first."""
    try:
        records = _get_matching_service().generate_matches(
            body.user,
            body.candidates,
            min_compatibility=body.min_compatibility,
            limit=body.limit,
            exclude_ids=body.exclude_ids,
            as_of=body.as_of,
        )
    except ValueError as exc:
        logger.warning("generate_matches_rejected", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    return MatchGenerateResponse(matches=records)


# ──────────────────────────────────────────────────────────────────────────────
# POST /feed — Discovery feed ordering
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/feed",
    response_model=FeedResponse,
    summary="Rank candidates for the discovery feed",
)
async def build_feed(body: FeedRequest) -> FeedResponse:
    candidates = _get_matching_service().build_feed(
        body.user,
        body.candidates,
        limit=body.limit,
        exclude_ids=body.exclude_ids,
        as_of=body.as_of,
    )
    return FeedResponse(candidates=candidates)


# ──────────────────────────────────────────────────────────────────────────────
# POST /action — Like / pass and mutual-match detection
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/action",
    response_model=MatchRecord,
    summary="Record a like or pass on a match",
)
async def record_action(body: MatchActionRequest) -> MatchRecord:
    """Apply one user's action and return the record with its resolved
    status (``matched`` once both users have liked each other)."""
    try:
        return _get_matching_service().record_action(
            body.record, body.actor_id, body.action
        )
    except ValueError as exc:
        logger.warning("record_action_rejected", actor_id=body.actor_id, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
