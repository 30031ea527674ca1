"""Unit tests for turning solicitation text into structured requirements."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from lease_match.domain.enums import BuildingClass, SpaceMeasure
from lease_match.domain.scoring import (
    BuildingRequirement,
    LocationRequirement,
    Requirement,
    SolicitationInput,
    SpaceRequirement,
    TimelineRequirement,
)
from lease_match.services.requirement_extractor import (
    DEFAULT_MAX_SQFT,
    DEFAULT_MIN_SQFT,
    add_months,
    extract_building_classes,
    extract_certifications,
    extract_features,
    extract_occupancy_date,
    extract_requirements,
    extract_square_footage,
    has_valid_requirements,
)

TODAY = date(2026, 1, 15)


def _solicitation(description="", title="", **kwargs):
    kwargs.setdefault("state", "DC")
    kwargs.setdefault("response_deadline", datetime(2026, 3, 1, 17, 0))
    return SolicitationInput(solicitation_id="sol-1", title=title, description=description, **kwargs)


# ═══════════════════════════════════════════════════════════════════════════
# Square footage
# ═══════════════════════════════════════════════════════════════════════════

class TestSquareFootage:

    def test_range_with_to(self):
        assert extract_square_footage("between 25,000 to 50,000 SF of space") == (25000, 50000, 37500)

    def test_range_with_dash_rsf(self):
        assert extract_square_footage("25,000 - 50,000 RSF") == (25000, 50000, 37500)

    def test_single_value_gets_band(self):
        assert extract_square_footage("approximately 40,000 square feet") == (32000, 48000, 40000)

    def test_single_value_without_commas(self):
        assert extract_square_footage("Offered space: 40000 SF") == (32000, 48000, 40000)

    def test_band_is_overridable(self):
        assert extract_square_footage("about 10,000 sq ft", band=0.10) == (9000, 11000, 10000)

    @pytest.mark.parametrize("text", ["500 SF storage cage", "2,000,000 SF campus"])
    def test_implausible_single_values_ignored(self, text):
        assert extract_square_footage(text) is None

    def test_no_size_returns_none(self):
        assert extract_square_footage("Office space for a field office.") is None

    def test_reversed_range_is_ordered(self):
        low, high, _ = extract_square_footage("50,000 to 25,000 square feet")
        assert (low, high) == (25000, 50000)


# ═══════════════════════════════════════════════════════════════════════════
# Building classes, features, certifications
# ═══════════════════════════════════════════════════════════════════════════

class TestBuildingText:

    def test_classes_in_order_of_mention(self):
        assert extract_building_classes("Class B or Class A+ space") == (
            BuildingClass.B,
            BuildingClass.A_PLUS,
        )

    def test_classes_case_insensitive_and_deduplicated(self):
        assert extract_building_classes("class c, CLASS C, Class A") == (
            BuildingClass.C,
            BuildingClass.A,
        )

    def test_default_classes(self):
        assert extract_building_classes("office space") == (BuildingClass.A, BuildingClass.B)

    def test_features(self):
        features = extract_features(
            "Must be SCIF capable with backup generator, 24/7 security and a loading dock."
        )
        assert features.scif_capable
        assert features.backup_power
        assert features.security_24x7
        assert features.loading_dock
        assert not features.cafeteria
        assert not features.data_center

    def test_certifications(self):
        assert extract_certifications("LEED Silver or ENERGY STAR rated") == ("LEED", "Energy Star")
        assert extract_certifications("no green building language") == ()


# ═══════════════════════════════════════════════════════════════════════════
# Dates
# ═══════════════════════════════════════════════════════════════════════════

class TestDates:

    @pytest.mark.parametrize("text,expected", [
        ("Occupancy by 03/01/2027 is required", date(2027, 3, 1)),
        ("Move-in date: 6/15/2027", date(2027, 6, 15)),
        ("space must be occupied by 12/31/27", date(2027, 12, 31)),
    ])
    def test_occupancy_date_from_text(self, text, expected):
        assert extract_occupancy_date(text) == expected

    def test_no_occupancy_date(self):
        assert extract_occupancy_date("Responses due soon") is None

    def test_add_months_clamps_day(self):
        assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
        assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)


# ═══════════════════════════════════════════════════════════════════════════
# Full extraction
# ═══════════════════════════════════════════════════════════════════════════

class TestExtractRequirements:

    def test_full_solicitation(self):
        req = extract_requirements(
            _solicitation(
                title="Lease of Office Space - Washington, DC",
                description=(
                    "GSA seeks 25,000 to 50,000 RSF of contiguous Class A office space "
                    "near Metro with secured access. LEED certification preferred. "
                    "Occupancy by 09/01/2027."
                ),
                city="Washington",
                zip_code="20001",
            ),
            today=TODAY,
        )

        assert req.solicitation_id == "sol-1"
        assert req.location.state == "DC"
        assert req.location.city == "Washington"
        assert req.location.zip_code == "20001"
        assert (req.space.min_sqft, req.space.max_sqft, req.space.target_sqft) == (25000, 50000, 37500)
        assert req.space.usable_or_rentable is SpaceMeasure.RENTABLE
        assert req.space.contiguous is True
        assert req.space.divisible is False
        assert req.building.acceptable_classes == (BuildingClass.A,)
        assert req.building.ada_compliant is True
        assert req.building.public_transit is True
        assert req.building.features.secure_access
        assert req.building.certifications == ("LEED",)
        assert req.timeline.occupancy_date == date(2027, 9, 1)
        assert req.timeline.firm_term_months == 120
        assert req.timeline.total_term_months == 240
        assert req.timeline.response_deadline == date(2026, 3, 1)

    def test_defaults_when_text_is_silent(self):
        req = extract_requirements(_solicitation("General office needs."), today=TODAY)

        assert req.space.min_sqft == DEFAULT_MIN_SQFT
        assert req.space.max_sqft == DEFAULT_MAX_SQFT
        assert req.space.target_sqft is None
        assert req.space.usable_or_rentable is SpaceMeasure.USABLE
        assert req.building.acceptable_classes == (BuildingClass.A, BuildingClass.B)
        # response deadline + 6 months
        assert req.timeline.occupancy_date == date(2026, 9, 1)

    def test_missing_deadline_falls_back_to_today(self):
        req = extract_requirements(
            _solicitation("office", response_deadline=None), today=TODAY
        )
        assert req.timeline.occupancy_date == date(2026, 7, 15)
        assert req.timeline.response_deadline is None

    def test_occupancy_offset_is_configurable(self):
        req = extract_requirements(_solicitation("office"), occupancy_offset_months=3, today=TODAY)
        assert req.timeline.occupancy_date == date(2026, 6, 1)

    def test_state_is_normalized(self):
        req = extract_requirements(_solicitation("office", state=" dc "), today=TODAY)
        assert req.location.state == "DC"

    def test_empty_input_never_raises(self):
        req = extract_requirements(
            SolicitationInput(solicitation_id="empty", title=None, description=None),
            today=TODAY,
        )
        assert req.location.state == ""
        assert not has_valid_requirements(req)

    def test_deadline_may_be_iso_string(self):
        req = extract_requirements(
            _solicitation("office", response_deadline="2026-04-10T12:00:00"), today=TODAY
        )
        assert req.timeline.response_deadline == date(2026, 4, 10)


class TestHasValidRequirements:

    def _req(self, state="DC", **space):
        return Requirement(
            location=LocationRequirement(state=state),
            space=SpaceRequirement(**space),
            building=BuildingRequirement(),
            timeline=TimelineRequirement(occupancy_date=TODAY),
        )

    def test_state_and_min(self):
        assert has_valid_requirements(self._req(min_sqft=10000))

    def test_target_only_is_enough(self):
        assert has_valid_requirements(self._req(target_sqft=10000))

    def test_missing_state(self):
        assert not has_valid_requirements(self._req(state="", min_sqft=10000))

    def test_missing_all_sizes(self):
        assert not has_valid_requirements(self._req())
