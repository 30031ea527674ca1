"""Typed dataclasses for the scoring engine's inputs and outputs.

Everything here is a plain value object: no ORM, no I/O.  Scorers read
these and return new ones; nothing is mutated after construction except
the notes lists on breakdowns while a scorer is building them.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from typing import TYPE_CHECKING, Generic, Iterable, Optional, TypeVar

from lease_match.domain.enums import BuildingClass, Grade, SpaceMeasure, TerminationReason

if TYPE_CHECKING:
    from lease_match.services.performance_tracker import PerformanceMetrics


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (``round`` is banker's)."""
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Building features
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildingFeatures:
    """Fixed set of named building features.

    Used both for what a listing *has* and what a solicitation *requires*.
    """

    fiber: bool = False
    backup_power: bool = False
    loading_dock: bool = False
    security_24x7: bool = False
    secure_access: bool = False
    scif_capable: bool = False
    data_center: bool = False
    cafeteria: bool = False
    fitness_center: bool = False
    conference_center: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str] | None) -> "BuildingFeatures":
        """Build from a list of feature names; unknown names are ignored."""
        if not names:
            return cls()
        known = {f.name for f in fields(cls)}
        enabled = {}
        for raw in names:
            key = FEATURE_ALIASES.get(str(raw).strip().lower(), str(raw).strip().lower())
            if key in known:
                enabled[key] = True
        return cls(**enabled)

    def enabled(self) -> list[str]:
        """Names of the features set to True, in table order."""
        return [name for name, _ in FEATURE_WEIGHTS if getattr(self, name)]


# (feature, weight) for building scoring.  Specialised spaces weigh more.
FEATURE_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("fiber", 5),
    ("backup_power", 5),
    ("loading_dock", 5),
    ("security_24x7", 5),
    ("secure_access", 5),
    ("scif_capable", 10),
    ("data_center", 10),
    ("cafeteria", 2),
    ("fitness_center", 2),
    ("conference_center", 3),
)

FEATURE_LABELS: dict[str, str] = {
    "fiber": "fiber connectivity",
    "backup_power": "backup power",
    "loading_dock": "loading dock",
    "security_24x7": "24/7 security",
    "secure_access": "secure access",
    "scif_capable": "SCIF capability",
    "data_center": "data center",
    "cafeteria": "cafeteria",
    "fitness_center": "fitness center",
    "conference_center": "conference space",
}

# Spellings seen in listing feature lists and older payloads
FEATURE_ALIASES: dict[str, str] = {
    "backuppower": "backup_power",
    "generator": "backup_power",
    "loadingdock": "loading_dock",
    "security24x7": "security_24x7",
    "24_7_security": "security_24x7",
    "secureaccess": "secure_access",
    "scif": "scif_capable",
    "scifcapable": "scif_capable",
    "datacenter": "data_center",
    "fitness": "fitness_center",
    "fitnesscenter": "fitness_center",
    "conference": "conference_center",
    "conferencecenter": "conference_center",
}


# ---------------------------------------------------------------------------
# Listing side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class ExperienceProfile:
    """A broker's track record with government leasing."""

    government_lease_experience: bool = False
    government_leases_count: int = 0
    gsa_certified: bool = False
    years_in_business: int = 0
    total_portfolio_sqft: int = 0
    references_count: int = 0
    willing_to_build_to_suit: bool = False
    willing_to_provide_improvements: bool = False


@dataclass(frozen=True)
class ListingProfile:
    """Scoring view of one broker listing."""

    listing_id: str
    city: str
    state: str
    total_sqft: int
    available_sqft: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    usable_sqft: Optional[int] = None
    min_divisible_sqft: Optional[int] = None
    is_contiguous: bool = True
    building_class: Optional[BuildingClass] = None
    ada_compliant: bool = True
    public_transit_access: bool = False
    features: BuildingFeatures = field(default_factory=BuildingFeatures)
    certifications: tuple[str, ...] = ()
    available_date: Optional[date] = None
    min_lease_term_months: Optional[int] = None
    max_lease_term_months: Optional[int] = None
    experience: Optional[ExperienceProfile] = None

    @property
    def effective_sqft(self) -> int:
        """Available area, falling back to total area when unset."""
        return self.available_sqft or self.total_sqft or 0


# ---------------------------------------------------------------------------
# Solicitation side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SolicitationInput:
    """Structured fields + free text of one solicitation, as the extractor sees it."""

    solicitation_id: str
    title: str = ""
    description: str = ""
    state: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    response_deadline: Optional[datetime | date] = None
    center: Optional[GeoPoint] = None
    radius_miles: Optional[float] = None


@dataclass(frozen=True)
class LocationRequirement:
    state: str
    city: Optional[str] = None
    zip_code: Optional[str] = None
    center: Optional[GeoPoint] = None
    radius_miles: Optional[float] = None


@dataclass(frozen=True)
class SpaceRequirement:
    min_sqft: Optional[int] = None
    max_sqft: Optional[int] = None
    target_sqft: Optional[int] = None
    usable_or_rentable: SpaceMeasure = SpaceMeasure.USABLE
    contiguous: bool = False
    divisible: bool = False

    def effective_min_sqft(self, band: float = 0.20) -> Optional[float]:
        """Minimum to gate on: the stated minimum, else target less the band."""
        if self.min_sqft is not None:
            return float(self.min_sqft)
        if self.target_sqft is not None:
            return self.target_sqft * (1 - band)
        return None


@dataclass(frozen=True)
class BuildingRequirement:
    acceptable_classes: tuple[BuildingClass, ...] = (BuildingClass.A, BuildingClass.B)
    ada_compliant: bool = True
    public_transit: bool = False
    parking_required: bool = False
    features: BuildingFeatures = field(default_factory=BuildingFeatures)
    certifications: tuple[str, ...] = ()


@dataclass(frozen=True)
class TimelineRequirement:
    occupancy_date: date
    firm_term_months: Optional[int] = 120
    total_term_months: Optional[int] = 240
    response_deadline: Optional[date] = None


@dataclass(frozen=True)
class Requirement:
    """Normalized ask extracted from one solicitation."""

    location: LocationRequirement
    space: SpaceRequirement
    building: BuildingRequirement
    timeline: TimelineRequirement
    solicitation_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Breakdowns (one per factor)
# ---------------------------------------------------------------------------


@dataclass
class LocationBreakdown:
    state_match: bool = False
    city_match: bool = False
    within_delineated_area: bool = False
    distance_miles: Optional[float] = None
    notes: list[str] = field(default_factory=list)


@dataclass
class SpaceBreakdown:
    meets_minimum: bool = False
    meets_maximum: bool = True
    meets_contiguous: bool = True
    available_sqft: Optional[int] = None
    required_sqft: Optional[int] = None
    variance: Optional[int] = None
    variance_percent: Optional[float] = None
    notes: list[str] = field(default_factory=list)


@dataclass
class BuildingBreakdown:
    class_match: bool = False
    accessibility_met: bool = True
    features_met: list[str] = field(default_factory=list)
    features_missing: list[str] = field(default_factory=list)
    certifications_met: list[str] = field(default_factory=list)
    certifications_missing: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


@dataclass
class TimelineBreakdown:
    available_on_time: bool = False
    lease_term_compatible: bool = True
    days_until_available: Optional[int] = None
    days_before_occupancy: Optional[int] = None
    notes: list[str] = field(default_factory=list)


@dataclass
class ExperienceBreakdown:
    has_gov_experience: bool = False
    gsa_certified: bool = False
    references_count: int = 0
    flexibility: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

B = TypeVar("B")


@dataclass
class FactorScore(Generic[B]):
    name: str
    score: float
    weight: float
    weighted: float
    breakdown: B


@dataclass
class MatchResult:
    """Scored (listing, solicitation) pair with its explanation."""

    listing_id: str
    solicitation_id: Optional[str]
    location: FactorScore[LocationBreakdown]
    space: FactorScore[SpaceBreakdown]
    building: FactorScore[BuildingBreakdown]
    timeline: FactorScore[TimelineBreakdown]
    experience: FactorScore[ExperienceBreakdown]
    overall_score: int
    grade: Grade
    qualified: bool
    competitive: bool
    disqualifiers: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def factors(self) -> dict[str, FactorScore]:
        return {
            "location": self.location,
            "space": self.space,
            "building": self.building,
            "timeline": self.timeline,
            "experience": self.experience,
        }

    def to_dict(self) -> dict:
        """JSON-safe representation (used for the persisted breakdown)."""
        data = asdict(self)
        data["grade"] = self.grade.value
        return data


# ---------------------------------------------------------------------------
# Run statistics
# ---------------------------------------------------------------------------


def _empty_reasons() -> dict[TerminationReason, int]:
    return {reason: 0 for reason in TerminationReason}


@dataclass
class ChunkStats:
    """Counters produced by one worker for one chunk of listings."""

    processed: int = 0
    matched: int = 0
    skipped: int = 0
    early_terminated: int = 0
    early_termination_reasons: dict[TerminationReason, int] = field(default_factory=_empty_reasons)
    errors: list[str] = field(default_factory=list)

    def terminate(self, reason: TerminationReason) -> None:
        self.skipped += 1
        self.early_terminated += 1
        self.early_termination_reasons[reason] += 1


@dataclass
class RunStatistics(ChunkStats):
    """Aggregate over one batch run.  Only ``merge`` folds chunk results in."""

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    duration_ms: int = 0
    persisted: int = 0
    aborted: bool = False
    performance: Optional["PerformanceMetrics"] = None

    def merge(self, chunk: ChunkStats) -> None:
        self.processed += chunk.processed
        self.matched += chunk.matched
        self.skipped += chunk.skipped
        self.early_terminated += chunk.early_terminated
        for reason, count in chunk.early_termination_reasons.items():
            self.early_termination_reasons[reason] += count
        self.errors.extend(chunk.errors)

    def finish(self) -> "RunStatistics":
        self.finished_at = datetime.now()
        self.duration_ms = int((self.finished_at - self.started_at).total_seconds() * 1000)
        return self

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "matched": self.matched,
            "skipped": self.skipped,
            "early_terminated": self.early_terminated,
            "early_termination_reasons": {
                reason.value: count for reason, count in self.early_termination_reasons.items()
            },
            "errors": list(self.errors),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_ms": self.duration_ms,
            "persisted": self.persisted,
            "aborted": self.aborted,
            "performance": self.performance.to_dict() if self.performance else None,
        }
