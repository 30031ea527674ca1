"""Rule-based requirement extraction from lease solicitations.

Pure-function module: NO LLM, NO database access.

Turns one solicitation (structured place-of-performance fields plus the
free-text title and description) into a normalized ``Requirement``.
Extraction never raises: when the text says nothing, conservative defaults
are used so downstream scorers always receive usable values.

Location is taken from structured fields only.  Size, building class,
features, certifications and occupancy date come from regexes over the
text.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime
from typing import Optional

from lease_match.domain.enums import BuildingClass, SpaceMeasure
from lease_match.domain.scoring import (
    BuildingFeatures,
    BuildingRequirement,
    LocationRequirement,
    Requirement,
    SolicitationInput,
    SpaceRequirement,
    TimelineRequirement,
    round_half_up,
)

logger = logging.getLogger(__name__)

# ── Defaults ────────────────────────────────────────────────────────────────

# Single stated size becomes target ± this fraction
SINGLE_VALUE_BAND = 0.20

# Nothing found: wide band that never disqualifies on size alone
DEFAULT_MIN_SQFT = 5_000
DEFAULT_MAX_SQFT = 50_000

# Plausible office requirement sizes
_MIN_SANE_SQFT = 1_000
_MAX_SANE_SQFT = 1_000_000

OCCUPANCY_OFFSET_MONTHS = 6
DEFAULT_FIRM_TERM_MONTHS = 120
DEFAULT_TOTAL_TERM_MONTHS = 240

DEFAULT_BUILDING_CLASSES = (BuildingClass.A, BuildingClass.B)

# ── Patterns ────────────────────────────────────────────────────────────────

_NUM = r"(\d{1,3}(?:,\d{3})+|\d+)"
_UNIT = r"(?:sq\.?\s*ft\.?|square\s+feet|square\s+foot|rsf|usf|sf)\b"

_RANGE_RE = re.compile(
    rf"\b{_NUM}\s*(?:to|-|–|—)\s*{_NUM}\s*(?:rentable\s+|usable\s+)?{_UNIT}",
    re.IGNORECASE,
)
_SINGLE_RE = re.compile(
    rf"(?:approximately|approx\.?|about|roughly|minimum\s+of|up\s+to)?\s*\b{_NUM}\s*"
    rf"(?:rentable\s+|usable\s+)?{_UNIT}",
    re.IGNORECASE,
)

_CLASS_RE = re.compile(r"\bclass\s+([abc]\+?)(?![a-z0-9])", re.IGNORECASE)

_FEATURE_PATTERNS: dict[str, re.Pattern] = {
    "fiber": re.compile(r"\bfiber\b|fibre|high[-\s]speed\s+internet", re.IGNORECASE),
    "backup_power": re.compile(r"backup\s+power|back-up\s+power|generator|emergency\s+power", re.IGNORECASE),
    "loading_dock": re.compile(r"loading\s+(?:dock|area)", re.IGNORECASE),
    "security_24x7": re.compile(
        r"24\s*(?:/|x|×|-)?\s*7\s+security|24[-\s]hour\s+security", re.IGNORECASE
    ),
    "secure_access": re.compile(
        r"secured?\s+access|access\s+control|controlled\s+access|card\s+access", re.IGNORECASE
    ),
    "scif_capable": re.compile(r"\bscif\b|sensitive\s+compartmented", re.IGNORECASE),
    "data_center": re.compile(r"data\s+cent(?:er|re)|server\s+room", re.IGNORECASE),
    "cafeteria": re.compile(r"cafeteria|food\s+service", re.IGNORECASE),
    "fitness_center": re.compile(r"fitness|\bgym\b", re.IGNORECASE),
    "conference_center": re.compile(r"conference|meeting\s+(?:space|rooms?)", re.IGNORECASE),
}

_CERTIFICATION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("LEED", re.compile(r"\bleed\b", re.IGNORECASE)),
    ("Energy Star", re.compile(r"energy\s*star", re.IGNORECASE)),
)

_TRANSIT_RE = re.compile(r"transit|metro|subway", re.IGNORECASE)
_PARKING_RE = re.compile(r"parking", re.IGNORECASE)
_CONTIGUOUS_RE = re.compile(r"\bcontiguous\b", re.IGNORECASE)
_DIVISIBLE_RE = re.compile(r"\bdivisible\b", re.IGNORECASE)
_RSF_RE = re.compile(r"\brsf\b|rentable\s+square", re.IGNORECASE)

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_OCCUPANCY_DATE_RES = (
    re.compile(rf"occupancy\s+(?:by|on|date)[:\s]+{_DATE}", re.IGNORECASE),
    re.compile(rf"move[-\s]?in\s+date[:\s]+{_DATE}", re.IGNORECASE),
    re.compile(rf"occupied\s+(?:by|on)[:\s]+{_DATE}", re.IGNORECASE),
)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _to_int(text: str) -> int:
    return int(text.replace(",", ""))


def _to_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None
    return None


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day to the target month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _parse_text_date(raw: str) -> Optional[date]:
    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


# ── Section extractors ──────────────────────────────────────────────────────


def extract_square_footage(
    text: str,
    band: float = SINGLE_VALUE_BAND,
) -> Optional[tuple[int, int, int]]:
    """Find the requested size in *text*.

    Returns ``(min, max, target)`` or ``None`` when no size is stated.
    A range sets min/max directly (target is the midpoint); a single value
    becomes the target with a ±``band`` window around it.
    """
    if not text:
        return None

    range_match = _RANGE_RE.search(text)
    if range_match:
        low, high = _to_int(range_match.group(1)), _to_int(range_match.group(2))
        if low > high:
            low, high = high, low
        if low > 0:
            return low, high, round_half_up((low + high) / 2)

    for match in _SINGLE_RE.finditer(text):
        value = _to_int(match.group(1))
        if _MIN_SANE_SQFT < value < _MAX_SANE_SQFT:
            return (
                round_half_up(value * (1 - band)),
                round_half_up(value * (1 + band)),
                value,
            )

    return None


def extract_building_classes(text: str) -> tuple[BuildingClass, ...]:
    """Acceptable classes in order of first mention; defaults to (A, B)."""
    classes: list[BuildingClass] = []
    for match in _CLASS_RE.finditer(text or ""):
        parsed = BuildingClass.parse(match.group(1))
        if parsed is not None and parsed not in classes:
            classes.append(parsed)
    return tuple(classes) if classes else DEFAULT_BUILDING_CLASSES


def extract_features(text: str) -> BuildingFeatures:
    return BuildingFeatures(
        **{name: bool(pattern.search(text or "")) for name, pattern in _FEATURE_PATTERNS.items()}
    )


def extract_certifications(text: str) -> tuple[str, ...]:
    return tuple(name for name, pattern in _CERTIFICATION_PATTERNS if pattern.search(text or ""))


def extract_occupancy_date(text: str) -> Optional[date]:
    for pattern in _OCCUPANCY_DATE_RES:
        match = pattern.search(text or "")
        if match:
            parsed = _parse_text_date(match.group(1))
            if parsed is not None:
                return parsed
    return None


# ── Main entry point ────────────────────────────────────────────────────────


def extract_requirements(
    solicitation: SolicitationInput,
    *,
    band: float = SINGLE_VALUE_BAND,
    occupancy_offset_months: int = OCCUPANCY_OFFSET_MONTHS,
    today: Optional[date] = None,
) -> Requirement:
    """Build a ``Requirement`` from one solicitation.  Never raises."""
    text = f"{solicitation.title or ''} {solicitation.description or ''}".strip()

    # Location: structured fields only
    location = LocationRequirement(
        state=(_clean(solicitation.state) or "").upper(),
        city=_clean(solicitation.city),
        zip_code=_clean(solicitation.zip_code),
        center=solicitation.center,
        radius_miles=solicitation.radius_miles,
    )

    # Space
    sizes = extract_square_footage(text, band=band)
    if sizes is None:
        min_sqft, max_sqft, target_sqft = DEFAULT_MIN_SQFT, DEFAULT_MAX_SQFT, None
    else:
        min_sqft, max_sqft, target_sqft = sizes
    space = SpaceRequirement(
        min_sqft=min_sqft,
        max_sqft=max_sqft,
        target_sqft=target_sqft,
        usable_or_rentable=SpaceMeasure.RENTABLE if _RSF_RE.search(text) else SpaceMeasure.USABLE,
        contiguous=bool(_CONTIGUOUS_RE.search(text)),
        divisible=bool(_DIVISIBLE_RE.search(text)),
    )

    # Building
    building = BuildingRequirement(
        acceptable_classes=extract_building_classes(text),
        ada_compliant=True,  # federal space is always ADA
        public_transit=bool(_TRANSIT_RE.search(text)),
        parking_required=bool(_PARKING_RE.search(text)),
        features=extract_features(text),
        certifications=extract_certifications(text),
    )

    # Timeline
    deadline = _to_date(solicitation.response_deadline)
    occupancy = extract_occupancy_date(text)
    if occupancy is None:
        base = deadline or today or date.today()
        occupancy = add_months(base, occupancy_offset_months)
    timeline = TimelineRequirement(
        occupancy_date=occupancy,
        firm_term_months=DEFAULT_FIRM_TERM_MONTHS,
        total_term_months=DEFAULT_TOTAL_TERM_MONTHS,
        response_deadline=deadline,
    )

    logger.debug(
        "Extracted requirements for %s: state=%s sqft=%s-%s classes=%s",
        solicitation.solicitation_id,
        location.state or "?",
        space.min_sqft,
        space.max_sqft,
        [c.value for c in building.acceptable_classes],
    )

    return Requirement(
        location=location,
        space=space,
        building=building,
        timeline=timeline,
        solicitation_id=solicitation.solicitation_id,
    )


def has_valid_requirements(requirement: Requirement) -> bool:
    """A requirement is matchable only with a state and some size figure."""
    space = requirement.space
    return bool(requirement.location.state) and (
        space.min_sqft is not None
        or space.max_sqft is not None
        or space.target_sqft is not None
    )
