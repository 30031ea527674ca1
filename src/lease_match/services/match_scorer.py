"""Deterministic multi-factor match scorer.

Pure-function module: NO LLM, NO database access.

Combines five independently scored dimensions into one explainable result:
    - Location    (30%)  state gate, city, delineated-area distance
    - Space       (25%)  available area against the requested band
    - Building    (20%)  class, accessibility, features, certifications
    - Timeline    (15%)  availability buffer and lease-term fit
    - Experience  (10%)  broker's government leasing record

Inputs are typed value objects (see ``lease_match.domain.scoring``) so the
scorer can be called from the batch matcher, from API routes, or from tests
without touching ORM objects.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from lease_match.domain.enums import Grade
from lease_match.domain.scoring import (
    ExperienceProfile,
    FactorScore,
    ListingProfile,
    MatchResult,
    Requirement,
    round_half_up,
)
from lease_match.services.building_score import score_building
from lease_match.services.experience_score import score_experience
from lease_match.services.location_score import score_location
from lease_match.services.space_score import score_space
from lease_match.services.timeline_score import score_timeline

# ── Weights ──────────────────────────────────────────────────────────────────

W_LOCATION = 0.30
W_SPACE = 0.25
W_BUILDING = 0.20
W_TIMELINE = 0.15
W_EXPERIENCE = 0.10

WEIGHTS: dict[str, float] = {
    "location": W_LOCATION,
    "space": W_SPACE,
    "building": W_BUILDING,
    "timeline": W_TIMELINE,
    "experience": W_EXPERIENCE,
}

# qualified AND at least this → competitive
COMPETITIVE_THRESHOLD = 70

# Under-minimum shortfall (percent) beyond which a listing is disqualified
SPACE_DISQUALIFY_SHORTFALL_PCT = 20

_GRADE_BANDS: tuple[tuple[int, Grade], ...] = (
    (85, Grade.A),
    (70, Grade.B),
    (55, Grade.C),
    (40, Grade.D),
)


# ── Helpers ──────────────────────────────────────────────────────────────────

def _clamp(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def grade_for(score: float) -> Grade:
    """Letter grade for an overall score."""
    for floor, grade in _GRADE_BANDS:
        if score >= floor:
            return grade
    return Grade.F


def _factor(name: str, key: str, score: float, breakdown) -> FactorScore:
    score = _clamp(score)
    weight = WEIGHTS[key]
    return FactorScore(
        name=name,
        score=score,
        weight=weight,
        weighted=score * weight,
        breakdown=breakdown,
    )


def find_disqualifiers(
    listing: ListingProfile,
    requirement: Requirement,
    location: FactorScore,
    space: FactorScore,
    building: FactorScore,
) -> list[str]:
    """Hard failures; any one of them means the listing is not qualified."""
    disqualifiers: list[str] = []

    if location.score == 0:
        disqualifiers.append("Property not in required state")

    space_details = space.breakdown
    if (
        not space_details.meets_minimum
        and space_details.variance_percent is not None
        and space_details.variance_percent < -SPACE_DISQUALIFY_SHORTFALL_PCT
    ):
        disqualifiers.append("Property significantly under minimum size requirement")

    if not building.breakdown.accessibility_met:
        disqualifiers.append("ADA accessibility requirement not met")

    if requirement.building.features.scif_capable and not listing.features.scif_capable:
        disqualifiers.append("SCIF capability required but not available")

    return disqualifiers


def generate_insights(
    location: FactorScore,
    space: FactorScore,
    building: FactorScore,
    timeline: FactorScore,
    experience: FactorScore,
) -> tuple[list[str], list[str], list[str]]:
    """Canned strengths / weaknesses / recommendations from the breakdowns."""
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []

    # Location
    if location.score >= 90:
        strengths.append("Excellent location - within delineated area")
    elif location.score < 60:
        weaknesses.append("Location may be outside preferred area")
        recommendations.append("Verify property is within delineated area boundaries")

    # Space
    if space.score >= 90:
        strengths.append("Space requirements fully met")
    elif not space.breakdown.meets_minimum:
        weaknesses.append(f"Space is {abs(space.breakdown.variance or 0):,} SF short")
        recommendations.append(
            "Consider if government might accept smaller space or if expansion is possible"
        )
    elif not space.breakdown.meets_contiguous:
        weaknesses.append("Space is not contiguous")
        recommendations.append("Confirm whether adjacent suites can be combined")

    # Building
    if building.score >= 80:
        strengths.append("Building meets technical requirements")
    if building.breakdown.features_missing:
        weaknesses.append(f"Missing features: {', '.join(building.breakdown.features_missing)}")
        recommendations.append("Evaluate cost to add missing features")
    if building.breakdown.certifications_met:
        strengths.append(f"Certifications: {', '.join(building.breakdown.certifications_met)}")

    # Timeline
    if timeline.score >= 90:
        strengths.append("Available well before required occupancy date")
    elif timeline.score < 60:
        weaknesses.append("Availability timeline is tight or delayed")
        recommendations.append("Communicate realistic timeline and any acceleration options")

    # Experience
    if experience.breakdown.has_gov_experience:
        strengths.append("Prior government lease experience")
    else:
        recommendations.append(
            "Highlight any institutional or corporate lease experience, "
            "or consider partnering with experienced prime contractor"
        )

    return strengths, weaknesses, recommendations


# ── Main scorer ──────────────────────────────────────────────────────────────

def compute_match_score(
    listing: ListingProfile,
    requirement: Requirement,
    *,
    experience: Optional[ExperienceProfile] = None,
    solicitation_id: Optional[str] = None,
    today: Optional[date] = None,
) -> MatchResult:
    """Score one listing against one requirement.

    Parameters
    ----------
    listing
        Scoring view of the listing.
    requirement
        Output of ``extract_requirements``.
    experience
        Broker profile to score; overrides ``listing.experience``.  When
        neither is given an empty profile (base score only) is used.
    solicitation_id
        Id recorded on the result; defaults to ``requirement.solicitation_id``.
    today
        Reference date for the timeline factor (defaults to today).

    Returns
    -------
    MatchResult
        Per-factor scores with breakdowns, overall score, grade,
        qualification flags and insight strings.
    """
    profile = experience or listing.experience or ExperienceProfile()

    location = _factor("Location", "location", *score_location(listing, requirement.location))
    space = _factor("Space", "space", *score_space(listing, requirement.space))
    building = _factor("Building", "building", *score_building(listing, requirement.building))
    timeline = _factor(
        "Timeline", "timeline", *score_timeline(listing, requirement.timeline, today=today)
    )
    experience_factor = _factor("Experience", "experience", *score_experience(profile))

    overall = round_half_up(
        location.weighted
        + space.weighted
        + building.weighted
        + timeline.weighted
        + experience_factor.weighted
    )
    overall = max(0, min(100, overall))

    disqualifiers = find_disqualifiers(listing, requirement, location, space, building)
    qualified = not disqualifiers

    strengths, weaknesses, recommendations = generate_insights(
        location, space, building, timeline, experience_factor
    )

    return MatchResult(
        listing_id=listing.listing_id,
        solicitation_id=solicitation_id or requirement.solicitation_id,
        location=location,
        space=space,
        building=building,
        timeline=timeline,
        experience=experience_factor,
        overall_score=overall,
        grade=grade_for(overall),
        qualified=qualified,
        competitive=qualified and overall >= COMPETITIVE_THRESHOLD,
        disqualifiers=disqualifiers,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendations=recommendations,
    )
