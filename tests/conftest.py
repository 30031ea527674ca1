"""Shared test infrastructure for the lease matching test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_listing_profile / make_solicitation_input: value-object factories
- make_broker_listing / make_solicitation: ORM row factories
"""

import uuid
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from lease_match.infra.database import Base

import lease_match.domain.models  # noqa: F401

from lease_match.domain.enums import BuildingClass
from lease_match.domain.models import BrokerListing, BrokerProfile, Solicitation
from lease_match.domain.scoring import (
    BuildingFeatures,
    ExperienceProfile,
    ListingProfile,
    SolicitationInput,
)


def future_deadline(days: int = 60) -> datetime:
    return datetime.now().replace(microsecond=0) + timedelta(days=days)


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Value-object factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_listing_profile():
    """Factory for ListingProfile with a mid-size Class A DC office.

    Usage:
        listing = make_listing_profile(state="VA", available_sqft=12000)
    """
    def _factory(
        listing_id: str | None = None,
        city: str = "Washington",
        state: str = "DC",
        total_sqft: int = 50000,
        available_sqft: int | None = 40000,
        building_class: BuildingClass | None = BuildingClass.A,
        features: tuple[str, ...] = (),
        experience: ExperienceProfile | None = None,
        **overrides,
    ) -> ListingProfile:
        return ListingProfile(
            listing_id=listing_id or f"lst-{uuid.uuid4().hex[:8]}",
            city=city,
            state=state,
            total_sqft=total_sqft,
            available_sqft=available_sqft,
            building_class=building_class,
            features=BuildingFeatures.from_names(features),
            experience=experience,
            **overrides,
        )

    return _factory


@pytest.fixture
def make_solicitation_input():
    """Factory for SolicitationInput asking for ~40,000 SF in Washington, DC.

    Usage:
        sol = make_solicitation_input(state="MD", description="Class B office")
    """
    def _factory(
        solicitation_id: str | None = None,
        title: str = "GSA Lease - Office Space",
        description: str = "The Government seeks approximately 40,000 square feet of office space.",
        state: str | None = "DC",
        city: str | None = "Washington",
        response_deadline: datetime | date | None = None,
        **overrides,
    ) -> SolicitationInput:
        return SolicitationInput(
            solicitation_id=solicitation_id or f"sol-{uuid.uuid4().hex[:8]}",
            title=title,
            description=description,
            state=state,
            city=city,
            response_deadline=response_deadline or future_deadline(),
            **overrides,
        )

    return _factory


# ---------------------------------------------------------------------------
# ORM row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_broker_listing(db_session):
    """Factory that creates a BrokerListing (and optionally its BrokerProfile).

    Usage:
        listing = await make_broker_listing(state="VA", with_broker=True)
    """
    async def _factory(
        city: str = "Washington",
        state: str = "DC",
        total_sqft: int = 50000,
        available_sqft: int | None = 40000,
        building_class: str | None = "A",
        features: list[str] | None = None,
        status: str = "active",
        with_broker: bool = False,
        **overrides,
    ) -> BrokerListing:
        broker = None
        if with_broker:
            broker = BrokerProfile(
                id=str(uuid.uuid4()),
                name="Capitol Realty",
                government_lease_experience=True,
                government_leases_count=6,
                gsa_certified=True,
                years_in_business=20,
                total_portfolio_sqft=2_000_000,
                references=[{"agency": "GSA"}, {"agency": "DHS"}, {"agency": "VA"}],
                willing_to_build_to_suit=True,
                willing_to_provide_improvements=True,
            )
            db_session.add(broker)

        listing = BrokerListing(
            id=str(uuid.uuid4()),
            broker_profile=broker,
            title="Downtown office",
            city=city,
            state=state,
            total_sqft=total_sqft,
            available_sqft=available_sqft,
            building_class=building_class,
            features=features or [],
            certifications=[],
            status=status,
            **overrides,
        )
        db_session.add(listing)
        await db_session.flush()
        return listing

    return _factory


@pytest.fixture
def make_solicitation(db_session):
    """Factory that creates a Solicitation row open for responses.

    Usage:
        sol = await make_solicitation(pop_state_code=None, office_state="MD")
    """
    async def _factory(
        title: str = "GSA Lease - Office Space",
        description: str = "The Government seeks approximately 40,000 square feet of office space.",
        pop_state_code: str | None = "DC",
        pop_city_name: str | None = "Washington",
        response_deadline: datetime | None = None,
        active: bool = True,
        **overrides,
    ) -> Solicitation:
        solicitation = Solicitation(
            id=str(uuid.uuid4()),
            notice_id=f"N-{uuid.uuid4().hex[:10]}",
            title=title,
            description=description,
            pop_state_code=pop_state_code,
            pop_city_name=pop_city_name,
            response_deadline=response_deadline or future_deadline(),
            active=active,
            **overrides,
        )
        db_session.add(solicitation)
        await db_session.flush()
        return solicitation

    return _factory
