"""Listing, solicitation and result stores used by the batch matcher.

The batch matcher only talks to the three small protocols below.
``SqlMatchStore`` implements all of them over an ``AsyncSession``;
``InMemoryMatchStore`` does the same over plain dicts for tests and
offline runs.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lease_match.domain.enums import ListingStatus
from lease_match.domain.models import BrokerListing, PropertyMatch, Solicitation
from lease_match.domain.scoring import ListingProfile, MatchResult, SolicitationInput
from lease_match.services.listing_serializer import (
    listing_to_profile,
    match_to_row,
    solicitation_to_input,
)

logger = logging.getLogger(__name__)


class ListingStore(Protocol):
    async def fetch_active_listings(self) -> list[ListingProfile]:
        ...


class SolicitationStore(Protocol):
    async def fetch_active_solicitations(self, now: datetime) -> list[SolicitationInput]:
        ...


class ResultStore(Protocol):
    async def upsert_matches(self, results: list[MatchResult]) -> int:
        """Insert or update by (listing_id, solicitation_id); raise on failure."""
        ...


def _deadline_open(deadline: Optional[datetime | date], now: datetime) -> bool:
    if deadline is None:
        return False
    if isinstance(deadline, datetime):
        return deadline >= now
    return deadline >= now.date()


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------


class SqlMatchStore:
    """All three stores over one async session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def fetch_active_listings(self) -> list[ListingProfile]:
        result = await self.session.execute(
            select(BrokerListing)
            .where(BrokerListing.status == ListingStatus.ACTIVE.value)
            .options(selectinload(BrokerListing.broker_profile))
        )
        profiles: list[ListingProfile] = []
        for row in result.scalars().all():
            try:
                profiles.append(listing_to_profile(row))
            except ValueError as exc:
                logger.warning("Skipping listing %s: %s", row.id, exc)
        return profiles

    async def fetch_active_solicitations(self, now: datetime) -> list[SolicitationInput]:
        result = await self.session.execute(
            select(Solicitation).where(
                Solicitation.active.is_(True),
                Solicitation.response_deadline >= now,
            )
        )
        return [solicitation_to_input(row) for row in result.scalars().all()]

    async def get_listing(self, listing_id: str) -> Optional[ListingProfile]:
        result = await self.session.execute(
            select(BrokerListing)
            .where(BrokerListing.id == listing_id)
            .options(selectinload(BrokerListing.broker_profile))
        )
        row = result.scalar_one_or_none()
        return listing_to_profile(row) if row else None

    async def get_solicitation(self, solicitation_id: str) -> Optional[SolicitationInput]:
        row = await self.session.get(Solicitation, solicitation_id)
        return solicitation_to_input(row) if row else None

    async def upsert_matches(self, results: list[MatchResult]) -> int:
        if not results:
            return 0

        # Last result wins when a pair appears twice in one call
        by_pair = {(r.listing_id, r.solicitation_id): r for r in results}
        listing_ids = {pair[0] for pair in by_pair}
        solicitation_ids = {pair[1] for pair in by_pair}

        try:
            existing_rows = await self.session.execute(
                select(PropertyMatch).where(
                    PropertyMatch.listing_id.in_(listing_ids),
                    PropertyMatch.solicitation_id.in_(solicitation_ids),
                )
            )
            existing = {
                (row.listing_id, row.solicitation_id): row
                for row in existing_rows.scalars().all()
            }

            updated = 0
            for pair, match_result in by_pair.items():
                values = match_to_row(match_result)
                row = existing.get(pair)
                if row is None:
                    self.session.add(PropertyMatch(**values))
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                    updated += 1

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.debug(
            "Upserted %d matches (%d updated, %d inserted)",
            len(by_pair),
            updated,
            len(by_pair) - updated,
        )
        return len(by_pair)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryMatchStore:
    """Dict-backed store; listings and solicitations are assumed active."""

    def __init__(
        self,
        listings: Iterable[ListingProfile] = (),
        solicitations: Iterable[SolicitationInput] = (),
    ):
        self.listings = list(listings)
        self.solicitations = list(solicitations)
        self.matches: dict[tuple[str, Optional[str]], MatchResult] = {}
        self.upsert_calls = 0

    async def fetch_active_listings(self) -> list[ListingProfile]:
        return list(self.listings)

    async def fetch_active_solicitations(self, now: datetime) -> list[SolicitationInput]:
        return [s for s in self.solicitations if _deadline_open(s.response_deadline, now)]

    async def upsert_matches(self, results: list[MatchResult]) -> int:
        self.upsert_calls += 1
        for match_result in results:
            self.matches[(match_result.listing_id, match_result.solicitation_id)] = match_result
        return len({(r.listing_id, r.solicitation_id) for r in results})
