"""Space factor: available area against the requested band.

Pure-function module: NO database access.
"""

from __future__ import annotations

import math

from lease_match.domain.scoring import ListingProfile, SpaceBreakdown, SpaceRequirement

NON_CONTIGUOUS_SCORE = 30


def _shortfall_score(shortfall_pct: float) -> tuple[float, str]:
    if shortfall_pct <= 5:
        return 80.0, "Within 5% of minimum - may qualify"
    if shortfall_pct <= 10:
        return 60.0, "Within 10% of minimum - negotiate"
    if shortfall_pct <= 20:
        return 40.0, "Within 20% of minimum - unlikely without expansion"
    return 20.0, "Significantly under minimum requirement"


def score_space(
    listing: ListingProfile,
    requirement: SpaceRequirement,
) -> tuple[float, SpaceBreakdown]:
    """Score 0-100.

    Rules
    -----
    * Contiguous space required, listing is not  → 30
    * Between min and max                        → 100, less 5 / 10 when the
      listing is 5-15% / 15-25% off the target
    * Over max, divisible down to max            → 80
    * Over max, not divisible                    → 50
    * Under min by ≤5% / ≤10% / ≤20% / more      → 80 / 60 / 40 / 20
    """
    available = listing.effective_sqft
    breakdown = SpaceBreakdown(
        available_sqft=available,
        required_sqft=requirement.min_sqft,
    )

    if requirement.contiguous and not listing.is_contiguous:
        breakdown.meets_contiguous = False
        breakdown.notes.append("Space is not contiguous as required")
        return float(NON_CONTIGUOUS_SCORE), breakdown

    min_req = requirement.min_sqft or 0
    max_req = requirement.max_sqft if requirement.max_sqft else math.inf

    if available >= min_req:
        breakdown.meets_minimum = True
    else:
        breakdown.variance = available - min_req
        breakdown.variance_percent = breakdown.variance / min_req * 100
        breakdown.notes.append(f"{abs(breakdown.variance):,} SF short of minimum")

    if available > max_req:
        breakdown.meets_maximum = False
        breakdown.notes.append(f"{int(available - max_req):,} SF over maximum")

    if breakdown.meets_minimum and breakdown.meets_maximum:
        score = 100.0
        target = requirement.target_sqft
        if target:
            deviation = abs(available - target) / target
            if deviation <= 0.05:
                breakdown.notes.append("Within 5% of target size")
            elif deviation <= 0.15:
                score -= 5
            elif deviation <= 0.25:
                score -= 10
        return score, breakdown

    if breakdown.meets_minimum:
        if listing.min_divisible_sqft and listing.min_divisible_sqft <= max_req:
            breakdown.notes.append("Can subdivide to meet maximum")
            return 80.0, breakdown
        breakdown.notes.append("Exceeds maximum, not easily divisible")
        return 50.0, breakdown

    score, note = _shortfall_score(abs(breakdown.variance_percent or 0))
    breakdown.notes.append(note)
    return score, breakdown
