"""Timeline factor: availability buffer and lease-term fit.

Pure-function module: NO database access.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from lease_match.domain.scoring import ListingProfile, TimelineBreakdown, TimelineRequirement

FIRM_TERM_PENALTY = 10
TOTAL_TERM_PENALTY = 5


def _on_time_score(buffer_days: int) -> tuple[float, str]:
    if buffer_days >= 90:
        return 100.0, "Available 90+ days before occupancy"
    if buffer_days >= 60:
        return 90.0, "Available 60+ days before occupancy"
    if buffer_days >= 30:
        return 80.0, "Available 30+ days before occupancy"
    return 70.0, "Tight timeline - available just before occupancy"


def _late_score(days_late: int) -> tuple[float, str]:
    if days_late <= 30:
        return 50.0, f"Available {days_late} days after required occupancy"
    if days_late <= 60:
        return 30.0, f"Available {days_late} days after required occupancy"
    return 10.0, "Significantly delayed availability"


def score_timeline(
    listing: ListingProfile,
    requirement: TimelineRequirement,
    *,
    today: Optional[date] = None,
) -> tuple[float, TimelineBreakdown]:
    """Score 0-100.

    Rules
    -----
    * Available ≥90 / ≥60 / ≥30 / <30 days before occupancy → 100 / 90 / 80 / 70
    * Available ≤30 / ≤60 / >60 days late                  → 50 / 30 / 10
    * Firm term shorter than the listing's minimum term     → −10
    * Total term longer than the listing's maximum term     → −5
    A listing without an availability date is treated as available today.
    """
    today = today or date.today()
    breakdown = TimelineBreakdown()

    available = listing.available_date or today
    buffer_days = (requirement.occupancy_date - available).days
    breakdown.days_until_available = (available - today).days
    breakdown.days_before_occupancy = buffer_days

    if buffer_days >= 0:
        breakdown.available_on_time = True
        score, note = _on_time_score(buffer_days)
    else:
        score, note = _late_score(abs(buffer_days))
    breakdown.notes.append(note)

    min_term = listing.min_lease_term_months
    max_term = listing.max_lease_term_months

    if requirement.firm_term_months and min_term and requirement.firm_term_months < min_term:
        score -= FIRM_TERM_PENALTY
        breakdown.lease_term_compatible = False
        breakdown.notes.append(f"Min lease term ({min_term} mo) exceeds requirement")

    if requirement.total_term_months and max_term and requirement.total_term_months > max_term:
        score -= TOTAL_TERM_PENALTY
        breakdown.notes.append("Max lease term may not accommodate full requirement")

    return max(0.0, score), breakdown
