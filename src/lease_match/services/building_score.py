"""Building factor: class, accessibility, features, certifications.

Pure-function module: NO database access.
"""

from __future__ import annotations

import math

from lease_match.domain.enums import BuildingClass
from lease_match.domain.scoring import (
    FEATURE_WEIGHTS,
    BuildingBreakdown,
    BuildingRequirement,
    ListingProfile,
)

BASE_SCORE = 50
PREFERRED_CLASS_POINTS = 20
ACCEPTABLE_CLASS_POINTS = 10
WRONG_CLASS_PENALTY = 20
ADA_PENALTY = 30
TRANSIT_PENALTY = 5
CERTIFICATION_POINTS = 5


def _normalized_classes(classes: tuple[BuildingClass, ...]) -> list[BuildingClass]:
    ordered: list[BuildingClass] = []
    for cls in classes:
        norm = cls.normalized
        if norm not in ordered:
            ordered.append(norm)
    return ordered


def score_building(
    listing: ListingProfile,
    requirement: BuildingRequirement,
) -> tuple[float, BuildingBreakdown]:
    """Score 0-100 starting from a base of 50.

    Class: +20 preferred (first listed), +10 acceptable, −20 otherwise;
    unknown class returns a flat 50.  ADA unmet −30, transit unmet −5.
    Each required feature adds its table weight when present and costs
    half of it (rounded up) when absent.  Each satisfied certification
    adds 5; misses are only recorded.
    """
    breakdown = BuildingBreakdown()

    if listing.building_class is None:
        breakdown.notes.append("Building class information not available")
        return float(BASE_SCORE), breakdown

    score = BASE_SCORE
    label = listing.building_class.value
    normalized = listing.building_class.normalized

    acceptable = _normalized_classes(requirement.acceptable_classes)
    if acceptable:
        if normalized in acceptable:
            breakdown.class_match = True
            if acceptable[0] == normalized:
                score += PREFERRED_CLASS_POINTS
                breakdown.notes.append(f"Class {label} - preferred")
            else:
                score += ACCEPTABLE_CLASS_POINTS
                breakdown.notes.append(f"Class {label} - acceptable")
        else:
            score -= WRONG_CLASS_PENALTY
            breakdown.notes.append(f"Class {label} - not in acceptable list")

    if requirement.ada_compliant and not listing.ada_compliant:
        breakdown.accessibility_met = False
        score -= ADA_PENALTY
        breakdown.notes.append("ADA compliance required but not met")

    if requirement.public_transit and not listing.public_transit_access:
        score -= TRANSIT_PENALTY
        breakdown.notes.append("Public transit access preferred")

    for feature, weight in FEATURE_WEIGHTS:
        if not getattr(requirement.features, feature):
            continue
        if getattr(listing.features, feature):
            breakdown.features_met.append(feature)
            score += weight
        else:
            breakdown.features_missing.append(feature)
            score -= math.ceil(weight / 2)

    listing_certs = [c.lower() for c in listing.certifications]
    for cert in requirement.certifications:
        needle = cert.lower()
        if any(needle in have for have in listing_certs):
            breakdown.certifications_met.append(cert)
            score += CERTIFICATION_POINTS
        else:
            breakdown.certifications_missing.append(cert)

    return float(max(0, min(100, score))), breakdown
