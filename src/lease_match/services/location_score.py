"""Location factor: state gate, city match, delineated-area proximity.

Pure-function module: NO database access.
"""

from __future__ import annotations

import math

from lease_match.domain.scoring import (
    ListingProfile,
    LocationBreakdown,
    LocationRequirement,
    round_half_up,
)

EARTH_RADIUS_MILES = 3959.0

STATE_POINTS = 40
CITY_POINTS = 30
PROXIMITY_POINTS = 30
OUTSIDE_RADIUS_PENALTY = 20


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in miles between two lat/lng points."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def score_location(
    listing: ListingProfile,
    requirement: LocationRequirement,
) -> tuple[float, LocationBreakdown]:
    """Score 0-100.

    Rules
    -----
    * Different state                         → 0 (disqualifying)
    * Same state                              → 40
    * Same city (case-insensitive)            → +30
    * Center + radius given, inside radius    → +30 × (1 − d/r)
    * Center + radius given, outside radius   → −20, floor 0
    * No radius but city matched              → +30
    """
    breakdown = LocationBreakdown()

    listing_state = (listing.state or "").strip().upper()
    required_state = (requirement.state or "").strip().upper()
    if not required_state or listing_state != required_state:
        breakdown.notes.append("Property not in required state")
        return 0.0, breakdown

    breakdown.state_match = True
    score = STATE_POINTS

    listing_city = (listing.city or "").strip().lower()
    required_city = (requirement.city or "").strip().lower()
    if required_city and listing_city == required_city:
        breakdown.city_match = True
        score += CITY_POINTS
        breakdown.notes.append("Exact city match")

    has_area = requirement.center is not None and bool(requirement.radius_miles)
    has_coords = listing.lat is not None and listing.lng is not None

    if has_area and not has_coords:
        breakdown.notes.append("Listing coordinates unavailable for delineated area check")
    elif has_area:
        radius = requirement.radius_miles
        distance = haversine_miles(
            listing.lat, listing.lng, requirement.center.lat, requirement.center.lng
        )
        breakdown.distance_miles = round(distance, 2)

        if distance <= radius:
            breakdown.within_delineated_area = True
            score += round_half_up(PROXIMITY_POINTS * (1 - distance / radius))
            breakdown.notes.append(
                f"{distance:.1f} miles from center (within {radius:g} mile radius)"
            )
        else:
            score = max(score - OUTSIDE_RADIUS_PENALTY, 0)
            breakdown.notes.append(
                f"{distance:.1f} miles from center (OUTSIDE {radius:g} mile radius)"
            )
    elif breakdown.city_match:
        score += PROXIMITY_POINTS

    return float(min(score, 100)), breakdown
