"""SQLAlchemy ORM models for lease matching.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for timestamps (no TIMESTAMPTZ)
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from lease_match.infra.database import Base


# ---------------------------------------------------------------------------
# Broker / Listing
# ---------------------------------------------------------------------------


class BrokerProfile(Base):
    """A broker's government leasing track record."""

    __tablename__ = "broker_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    government_lease_experience = Column(Boolean, default=False)
    government_leases_count = Column(Integer, default=0)
    gsa_certified = Column(Boolean, default=False)
    years_in_business = Column(Integer, default=0)
    total_portfolio_sqft = Column(Integer, default=0)
    references = Column(JSON, default=list)  # [{agency, contract_value, year}]
    willing_to_build_to_suit = Column(Boolean, default=False)
    willing_to_provide_improvements = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    listings = relationship("BrokerListing", back_populates="broker_profile")


class BrokerListing(Base):
    """Space a property owner's broker is offering for lease."""

    __tablename__ = "broker_listings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    broker_profile_id = Column(String(36), ForeignKey("broker_profiles.id"), nullable=True, index=True)
    title = Column(String(255))
    address = Column(String(500))
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False, index=True)
    zip = Column(String(20))
    lat = Column(Float)
    lng = Column(Float)
    total_sqft = Column(Integer, nullable=False)
    available_sqft = Column(Integer)
    usable_sqft = Column(Integer)
    min_divisible_sqft = Column(Integer)
    is_contiguous = Column(Boolean, default=True)
    building_class = Column(String(2))  # A+, A, B, C
    ada_compliant = Column(Boolean, default=True)
    public_transit_access = Column(Boolean, default=False)
    features = Column(JSON, default=list)  # ["fiber", "backup_power", ...]
    certifications = Column(JSON, default=list)  # ["LEED Gold", "Energy Star"]
    available_date = Column(Date)
    min_lease_term_months = Column(Integer)
    max_lease_term_months = Column(Integer)
    status = Column(String(20), default="active", index=True)  # active, inactive, leased
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    broker_profile = relationship("BrokerProfile", back_populates="listings")
    matches = relationship("PropertyMatch", back_populates="listing")


# ---------------------------------------------------------------------------
# Solicitations
# ---------------------------------------------------------------------------


class Solicitation(Base):
    """Government lease solicitation as stored by the ingestion pipeline."""

    __tablename__ = "solicitations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    notice_id = Column(String(100), unique=True, index=True)
    title = Column(String(500))
    description = Column(Text)
    pop_state_code = Column(String(2))
    pop_city_name = Column(String(100))
    pop_zip = Column(String(20))
    office_state = Column(String(2))
    office_city = Column(String(100))
    office_zip = Column(String(20))
    center_lat = Column(Float)
    center_lng = Column(Float)
    radius_miles = Column(Float)
    response_deadline = Column(DateTime, index=True)
    set_aside = Column(String(100))
    active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    matches = relationship("PropertyMatch", back_populates="solicitation")


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------


class PropertyMatch(Base):
    """Persisted score for one (listing, solicitation) pair."""

    __tablename__ = "property_matches"
    __table_args__ = (
        UniqueConstraint("listing_id", "solicitation_id", name="uq_property_match_pair"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    listing_id = Column(String(36), ForeignKey("broker_listings.id"), nullable=False, index=True)
    solicitation_id = Column(String(36), ForeignKey("solicitations.id"), nullable=False, index=True)
    overall_score = Column(Integer, nullable=False)
    grade = Column(String(1), nullable=False)
    qualified = Column(Boolean, default=False)
    competitive = Column(Boolean, default=False)
    location_score = Column(Float)
    space_score = Column(Float)
    building_score = Column(Float)
    timeline_score = Column(Float)
    experience_score = Column(Float)
    score_breakdown = Column(JSON)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    listing = relationship("BrokerListing", back_populates="matches")
    solicitation = relationship("Solicitation", back_populates="matches")
