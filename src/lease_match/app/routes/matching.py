"""Matching API routes.

Trigger a batch run over every active listing and open solicitation,
score a single pair on demand, and read back persisted matches.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lease_match.domain.models import PropertyMatch
from lease_match.domain.schemas import (
    CalculateMatchRequest,
    MatchingRunRequest,
    PropertyMatchResponse,
    RunStatisticsResponse,
)
from lease_match.infra.database import get_db
from lease_match.services.batch_matcher import MatchingConfig, run_matching_job
from lease_match.services.match_scorer import compute_match_score
from lease_match.services.match_store import SqlMatchStore
from lease_match.services.requirement_extractor import extract_requirements

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/matching", tags=["matching"])
scoring_router = APIRouter(prefix="/api/scoring", tags=["scoring"])


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@router.post("/run", response_model=RunStatisticsResponse)
async def run_matching(
    body: Optional[MatchingRunRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Run the full listings x solicitations batch and persist the hits.

    Run-level problems (no listings, store failures) come back in
    ``errors`` with a 200; only invalid parameters are rejected.
    """
    body = body or MatchingRunRequest()
    stats = await run_matching_job(db, min_score=body.min_score, chunk_size=body.chunk_size)
    logger.info(
        "Matching run via API: %d processed, %d matched, %d persisted",
        stats.processed,
        stats.matched,
        stats.persisted,
    )
    return stats.to_dict()


@router.get("/matches", response_model=list[PropertyMatchResponse])
async def list_matches(
    listing_id: Optional[str] = Query(None),
    solicitation_id: Optional[str] = Query(None),
    min_score: Optional[float] = Query(None, ge=0, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Persisted matches, best first."""
    query = select(PropertyMatch)
    if listing_id:
        query = query.where(PropertyMatch.listing_id == listing_id)
    if solicitation_id:
        query = query.where(PropertyMatch.solicitation_id == solicitation_id)
    if min_score is not None:
        query = query.where(PropertyMatch.overall_score >= min_score)
    query = query.order_by(PropertyMatch.overall_score.desc(), PropertyMatch.listing_id)

    result = await db.execute(query)
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Single pair
# ---------------------------------------------------------------------------


@scoring_router.post("/calculate-match")
async def calculate_match(
    body: CalculateMatchRequest,
    db: AsyncSession = Depends(get_db),
):
    """Score one listing against one solicitation and store the result."""
    store = SqlMatchStore(db)

    try:
        listing = await store.get_listing(body.listing_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not listing:
        raise HTTPException(status_code=404, detail="Listing not found")

    solicitation = await store.get_solicitation(body.solicitation_id)
    if not solicitation:
        raise HTTPException(status_code=404, detail="Solicitation not found")

    config = MatchingConfig.from_settings()
    requirement = extract_requirements(
        solicitation,
        band=config.single_value_band,
        occupancy_offset_months=config.occupancy_offset_months,
        today=config.today,
    )
    result = compute_match_score(
        listing,
        requirement,
        experience=listing.experience or config.default_experience,
        today=config.today,
    )

    await store.upsert_matches([result])
    logger.info(
        "Scored listing %s vs solicitation %s: %d (%s)",
        listing.listing_id,
        solicitation.solicitation_id,
        result.overall_score,
        result.grade.value,
    )
    return result.to_dict()
