"""Domain enumerations for lease matching.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class BuildingClass(str, Enum):
    """Commercial office building class."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"

    @classmethod
    def parse(cls, value) -> "BuildingClass | None":
        """Lenient parse of a stored class value (``"a"``, ``"Class B"``...)."""
        if value is None:
            return None
        if isinstance(value, BuildingClass):
            return value
        cleaned = str(value).strip().upper().replace("CLASS", "").strip()
        try:
            return cls(cleaned)
        except ValueError:
            return None

    @property
    def normalized(self) -> "BuildingClass":
        """A+ is treated as A for acceptable-class membership checks."""
        return BuildingClass.A if self is BuildingClass.A_PLUS else self


class Grade(str, Enum):
    """Letter grade derived from the overall match score."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class TerminationReason(str, Enum):
    """Why the batch matcher skipped a pair before full scoring."""

    INVALID_REQUIREMENTS = "INVALID_REQUIREMENTS"
    STATE_MISMATCH = "STATE_MISMATCH"
    SPACE_TOO_SMALL = "SPACE_TOO_SMALL"


class ListingStatus(str, Enum):
    """Lifecycle status of a broker listing."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LEASED = "leased"


class SpaceMeasure(str, Enum):
    """Whether a solicitation states its area as usable or rentable."""

    USABLE = "usable"
    RENTABLE = "rentable"
