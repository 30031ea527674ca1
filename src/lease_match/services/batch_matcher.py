"""Batch matcher: every active listing against every open solicitation.

Pipeline
--------
1. Fetch active listings and open solicitations from the stores.
2. Extract a ``Requirement`` once per solicitation.
3. Split listings into chunks and score each chunk in a worker thread.
   Cheap checks run first and short-circuit the full scorer:
   invalid requirements, state mismatch, space far too small.
4. Fold each chunk's ``ChunkStats`` into the run's ``RunStatistics`` in
   chunk order (the only place run state is mutated).
5. Upsert every pair at or above ``min_score`` in a single call.

Run-level failures (nothing to match, store errors) end the run early and
are reported through ``RunStatistics.errors``; they never raise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from lease_match.app.config import Settings, get_settings
from lease_match.domain.enums import TerminationReason
from lease_match.domain.scoring import (
    ChunkStats,
    ExperienceProfile,
    ListingProfile,
    MatchResult,
    Requirement,
    RunStatistics,
)
from lease_match.services.match_scorer import compute_match_score
from lease_match.services.match_store import (
    ListingStore,
    ResultStore,
    SolicitationStore,
    SqlMatchStore,
)
from lease_match.services.performance_tracker import PerformanceTracker
from lease_match.services.requirement_extractor import (
    OCCUPANCY_OFFSET_MONTHS,
    SINGLE_VALUE_BAND,
    extract_requirements,
    has_valid_requirements,
)

logger = logging.getLogger(__name__)

# Available space below this fraction of the effective minimum is skipped
SPACE_TOO_SMALL_RATIO = 0.7

DEFAULT_MIN_SCORE = 40.0
DEFAULT_CHUNK_SIZE = 50

# Used for listings without a broker profile: no government record,
# mid-sized established broker open to build-to-suit and improvements.
DEFAULT_BROKER_EXPERIENCE = ExperienceProfile(
    government_lease_experience=False,
    government_leases_count=0,
    gsa_certified=False,
    years_in_business=5,
    total_portfolio_sqft=500_000,
    references_count=0,
    willing_to_build_to_suit=True,
    willing_to_provide_improvements=True,
)


@dataclass
class MatchingConfig:
    """Per-run knobs.  Build with ``from_settings`` or construct directly."""

    min_score: float = DEFAULT_MIN_SCORE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_workers: int = 4
    run_budget_seconds: Optional[float] = None
    space_too_small_ratio: float = SPACE_TOO_SMALL_RATIO
    single_value_band: float = SINGLE_VALUE_BAND
    occupancy_offset_months: int = OCCUPANCY_OFFSET_MONTHS
    default_experience: ExperienceProfile = field(default_factory=lambda: DEFAULT_BROKER_EXPERIENCE)
    today: Optional[date] = None

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "MatchingConfig":
        settings = settings or get_settings()
        values = dict(
            min_score=settings.match_min_score,
            chunk_size=settings.match_chunk_size,
            max_workers=settings.match_max_workers,
            run_budget_seconds=settings.match_run_budget_seconds,
            space_too_small_ratio=settings.space_too_small_ratio,
            single_value_band=settings.single_value_band,
            occupancy_offset_months=settings.occupancy_offset_months,
        )
        values.update(overrides)
        return cls(**values)


@dataclass
class ChunkResult:
    """What one worker hands back for one chunk."""

    chunk_index: int
    listings_count: int
    matches: list[MatchResult]
    stats: ChunkStats
    duration_ms: float


def chunk_listings(listings: Sequence[ListingProfile], chunk_size: int) -> list[list[ListingProfile]]:
    """Split into consecutive chunks of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [list(listings[i:i + chunk_size]) for i in range(0, len(listings), chunk_size)]


def early_termination_reason(
    listing: ListingProfile,
    requirement: Requirement,
    config: MatchingConfig,
) -> Optional[TerminationReason]:
    """First cheap check the pair fails, or None when it needs full scoring."""
    if not has_valid_requirements(requirement):
        return TerminationReason.INVALID_REQUIREMENTS

    listing_state = (listing.state or "").strip().upper()
    if listing_state != (requirement.location.state or "").strip().upper():
        return TerminationReason.STATE_MISMATCH

    effective_min = requirement.space.effective_min_sqft(config.single_value_band)
    if effective_min is not None and listing.effective_sqft < effective_min * config.space_too_small_ratio:
        return TerminationReason.SPACE_TOO_SMALL

    return None


def score_chunk(
    chunk_index: int,
    listings: Sequence[ListingProfile],
    requirements: Sequence[Requirement],
    min_score: float,
    config: MatchingConfig,
    today: date,
) -> ChunkResult:
    """Score one chunk of listings against every requirement.

    Runs in a worker thread: touches nothing but its arguments.
    """
    start = time.perf_counter()
    stats = ChunkStats()
    matches: list[MatchResult] = []

    for listing in listings:
        experience = listing.experience or config.default_experience
        for requirement in requirements:
            stats.processed += 1

            try:
                reason = early_termination_reason(listing, requirement, config)
                if reason is not None:
                    stats.terminate(reason)
                    continue

                result = compute_match_score(
                    listing, requirement, experience=experience, today=today
                )
            except Exception as exc:
                message = (
                    f"Error matching listing {listing.listing_id} "
                    f"with solicitation {requirement.solicitation_id}: {exc}"
                )
                logger.warning("%s", message)
                stats.errors.append(message)
                continue

            if result.overall_score >= min_score:
                matches.append(result)
                stats.matched += 1
            else:
                stats.skipped += 1

    return ChunkResult(
        chunk_index=chunk_index,
        listings_count=len(listings),
        matches=matches,
        stats=stats,
        duration_ms=(time.perf_counter() - start) * 1000,
    )


class BatchMatcher:
    """Runs the listings x solicitations cross-product and persists the hits."""

    def __init__(
        self,
        listing_store: ListingStore,
        solicitation_store: SolicitationStore,
        result_store: ResultStore,
        config: Optional[MatchingConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.listing_store = listing_store
        self.solicitation_store = solicitation_store
        self.result_store = result_store
        self.config = config or MatchingConfig()
        self._clock = clock

    async def run_matching(
        self,
        min_score: Optional[float] = None,
        chunk_size: Optional[int] = None,
    ) -> RunStatistics:
        """Match everything once.

        Parameters
        ----------
        min_score
            Pairs scoring below this are counted as skipped and not stored.
        chunk_size
            Listings per worker chunk.

        Returns
        -------
        RunStatistics
            Counters, errors, persisted count and performance metrics.

        Raises
        ------
        ValueError
            ``chunk_size`` below 1 or ``min_score`` outside [0, 100].
        """
        min_score = self.config.min_score if min_score is None else min_score
        chunk_size = self.config.chunk_size if chunk_size is None else chunk_size
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if not 0 <= min_score <= 100:
            raise ValueError(f"min_score must be between 0 and 100, got {min_score}")

        stats = RunStatistics()
        tracker = PerformanceTracker()
        started = self._clock()
        today = self.config.today or date.today()

        # ── Fetch ────────────────────────────────────────────────────────
        try:
            listings = await self.listing_store.fetch_active_listings()
        except Exception as exc:
            logger.error("Failed to fetch listings: %s", exc)
            stats.errors.append(f"Error fetching properties: {exc}")
            return self._finish(stats, tracker)

        if not listings:
            logger.info("No active listings; nothing to match")
            stats.errors.append("No active properties found")
            return self._finish(stats, tracker)

        try:
            solicitations = await self.solicitation_store.fetch_active_solicitations(datetime.now())
        except Exception as exc:
            logger.error("Failed to fetch solicitations: %s", exc)
            stats.errors.append(f"Error fetching opportunities: {exc}")
            return self._finish(stats, tracker)

        if not solicitations:
            logger.info("No open solicitations; nothing to match")
            stats.errors.append("No active opportunities found")
            return self._finish(stats, tracker)

        # ── Extract once per solicitation ────────────────────────────────
        requirements = [
            extract_requirements(
                solicitation,
                band=self.config.single_value_band,
                occupancy_offset_months=self.config.occupancy_offset_months,
                today=today,
            )
            for solicitation in solicitations
        ]

        chunks = chunk_listings(listings, chunk_size)
        logger.info(
            "Matching %d listings x %d solicitations (%d combinations), "
            "min score %s, chunk size %d, %d chunks",
            len(listings),
            len(requirements),
            len(listings) * len(requirements),
            min_score,
            chunk_size,
            len(chunks),
        )

        # ── Score ────────────────────────────────────────────────────────
        matches: list[MatchResult] = []
        workers = self.config.max_workers

        def reduce(chunk_result: ChunkResult) -> None:
            stats.merge(chunk_result.stats)
            matches.extend(chunk_result.matches)
            tracker.record_chunk(
                chunk_result.chunk_index, chunk_result.listings_count, chunk_result.duration_ms
            )
            logger.info(
                "Chunk %d/%d done: %d listings, %d matches, %.0fms",
                chunk_result.chunk_index + 1,
                len(chunks),
                chunk_result.listings_count,
                chunk_result.stats.matched,
                chunk_result.duration_ms,
            )

        if workers == 1:
            for index, chunk in enumerate(chunks):
                if self._over_budget(started):
                    stats.aborted = True
                    break
                reduce(score_chunk(index, chunk, requirements, min_score, self.config, today))
        else:
            loop = asyncio.get_running_loop()
            with ThreadPoolExecutor(max_workers=workers) as executor:
                for window_start in range(0, len(chunks), workers):
                    if self._over_budget(started):
                        stats.aborted = True
                        break
                    futures = [
                        loop.run_in_executor(
                            executor,
                            score_chunk,
                            index,
                            chunks[index],
                            requirements,
                            min_score,
                            self.config,
                            today,
                        )
                        for index in range(window_start, min(window_start + workers, len(chunks)))
                    ]
                    # gather keeps submission order, so merges stay in chunk order
                    for chunk_result in await asyncio.gather(*futures):
                        reduce(chunk_result)

        if stats.aborted:
            logger.warning(
                "Run budget of %ss exceeded; stopped after %d of %d chunks",
                self.config.run_budget_seconds,
                len(tracker.chunk_metrics),
                len(chunks),
            )

        reasons = stats.early_termination_reasons
        logger.info(
            "Early termination: %d of %d pairs (invalid requirements %d, "
            "state mismatch %d, space too small %d)",
            stats.early_terminated,
            stats.processed,
            reasons[TerminationReason.INVALID_REQUIREMENTS],
            reasons[TerminationReason.STATE_MISMATCH],
            reasons[TerminationReason.SPACE_TOO_SMALL],
        )

        # ── Persist ──────────────────────────────────────────────────────
        if matches:
            try:
                stats.persisted = await self.result_store.upsert_matches(matches)
                logger.info("Persisted %d matches", stats.persisted)
            except Exception as exc:
                logger.error("Failed to upsert %d matches: %s", len(matches), exc)
                stats.errors.append(f"Error upserting matches: {exc}")

        return self._finish(stats, tracker)

    def _over_budget(self, started: float) -> bool:
        budget = self.config.run_budget_seconds
        return budget is not None and self._clock() - started >= budget

    @staticmethod
    def _finish(stats: RunStatistics, tracker: PerformanceTracker) -> RunStatistics:
        stats.performance = tracker.get_metrics(stats)
        tracker.log_metrics(stats.performance, stats)
        return stats.finish()


async def run_matching_job(
    session: AsyncSession,
    min_score: Optional[float] = None,
    chunk_size: Optional[int] = None,
    config: Optional[MatchingConfig] = None,
) -> RunStatistics:
    """Run a full batch against the database behind *session*."""
    store = SqlMatchStore(session)
    matcher = BatchMatcher(store, store, store, config or MatchingConfig.from_settings())
    return await matcher.run_matching(min_score=min_score, chunk_size=chunk_size)
