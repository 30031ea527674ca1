"""Row <-> value-object conversion for the matching engine.

The scorers only ever see ``ListingProfile`` / ``SolicitationInput``; this
layer reads the ORM rows and shapes them, and turns ``MatchResult`` back into
``property_matches`` column values.
"""

from __future__ import annotations

from typing import Optional

from lease_match.domain.enums import BuildingClass
from lease_match.domain.models import BrokerListing, BrokerProfile, Solicitation
from lease_match.domain.scoring import (
    BuildingFeatures,
    ExperienceProfile,
    GeoPoint,
    ListingProfile,
    MatchResult,
    SolicitationInput,
)


def profile_from_broker(broker: BrokerProfile | None) -> ExperienceProfile | None:
    """Experience profile from a broker row; None when the listing has no broker."""
    if broker is None:
        return None
    return ExperienceProfile(
        government_lease_experience=bool(broker.government_lease_experience),
        government_leases_count=broker.government_leases_count or 0,
        gsa_certified=bool(broker.gsa_certified),
        years_in_business=broker.years_in_business or 0,
        total_portfolio_sqft=broker.total_portfolio_sqft or 0,
        references_count=len(broker.references or []),
        willing_to_build_to_suit=bool(broker.willing_to_build_to_suit),
        willing_to_provide_improvements=bool(broker.willing_to_provide_improvements),
    )


def listing_to_profile(
    listing: BrokerListing,
    default_experience: Optional[ExperienceProfile] = None,
) -> ListingProfile:
    """Scoring view of one listing row.

    Raises ``ValueError`` when the row advertises more available space than
    the building holds; the caller decides whether to skip it.
    """
    total = listing.total_sqft or 0
    available = listing.available_sqft
    if available is not None and available > total:
        raise ValueError(
            f"Listing {listing.id} has available_sqft {available} > total_sqft {total}"
        )

    experience = profile_from_broker(listing.broker_profile) or default_experience

    return ListingProfile(
        listing_id=listing.id,
        city=(listing.city or "").strip(),
        state=(listing.state or "").strip().upper(),
        total_sqft=total,
        available_sqft=available,
        lat=listing.lat,
        lng=listing.lng,
        usable_sqft=listing.usable_sqft,
        min_divisible_sqft=listing.min_divisible_sqft,
        is_contiguous=True if listing.is_contiguous is None else bool(listing.is_contiguous),
        building_class=BuildingClass.parse(listing.building_class),
        ada_compliant=True if listing.ada_compliant is None else bool(listing.ada_compliant),
        public_transit_access=bool(listing.public_transit_access),
        features=BuildingFeatures.from_names(listing.features),
        certifications=tuple(listing.certifications or ()),
        available_date=listing.available_date,
        min_lease_term_months=listing.min_lease_term_months,
        max_lease_term_months=listing.max_lease_term_months,
        experience=experience,
    )


def solicitation_to_input(solicitation: Solicitation) -> SolicitationInput:
    """Extractor input from a solicitation row.

    Place of performance wins; the contracting office address fills gaps.
    """
    center = None
    if solicitation.center_lat is not None and solicitation.center_lng is not None:
        center = GeoPoint(solicitation.center_lat, solicitation.center_lng)

    return SolicitationInput(
        solicitation_id=solicitation.id,
        title=solicitation.title or "",
        description=solicitation.description or "",
        state=solicitation.pop_state_code or solicitation.office_state,
        city=solicitation.pop_city_name or solicitation.office_city,
        zip_code=solicitation.pop_zip or solicitation.office_zip,
        response_deadline=solicitation.response_deadline,
        center=center,
        radius_miles=solicitation.radius_miles,
    )


def match_to_row(result: MatchResult) -> dict:
    """``property_matches`` column values for one result."""
    return {
        "listing_id": result.listing_id,
        "solicitation_id": result.solicitation_id,
        "overall_score": result.overall_score,
        "grade": result.grade.value,
        "qualified": result.qualified,
        "competitive": result.competitive,
        "location_score": result.location.score,
        "space_score": result.space.score,
        "building_score": result.building.score,
        "timeline_score": result.timeline.score,
        "experience_score": result.experience.score,
        "score_breakdown": result.to_dict(),
    }

