"""Experience factor: the listing broker's government leasing record.

Pure-function module: NO database access.
"""

from __future__ import annotations

from lease_match.domain.scoring import ExperienceBreakdown, ExperienceProfile


def score_experience(profile: ExperienceProfile) -> tuple[float, ExperienceBreakdown]:
    """Score 0-100 from a base of 30 for any broker."""
    score = 30
    breakdown = ExperienceBreakdown()

    if profile.government_lease_experience:
        breakdown.has_gov_experience = True
        score += 25
        breakdown.notes.append("Prior government lease experience")

        if profile.government_leases_count >= 5:
            score += 15
            breakdown.notes.append("5+ government leases completed")
        elif profile.government_leases_count >= 2:
            score += 10
            breakdown.notes.append(
                f"{profile.government_leases_count} government leases completed"
            )

    if profile.gsa_certified:
        breakdown.gsa_certified = True
        score += 10
        breakdown.notes.append("GSA certified broker")

    breakdown.references_count = profile.references_count
    if profile.references_count >= 3:
        score += 10
    elif profile.references_count >= 1:
        score += 5

    if profile.willing_to_build_to_suit:
        score += 5
        breakdown.flexibility.append("Build-to-suit available")
    if profile.willing_to_provide_improvements:
        score += 5
        breakdown.flexibility.append("TI allowance available")

    return float(min(100, score)), breakdown
