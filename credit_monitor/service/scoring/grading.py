"""
Grade and Risk Classification.

Both classifiers hold an ordered table of [min_inclusive, max_exclusive)
bands covering 0-1000. Tables are validated once, at construction; a bad
table raises ConfigurationError so the process fails at startup instead
of misclassifying at runtime.
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from credit_monitor.domain.entities import RiskCategory
from credit_monitor.domain.exceptions import ConfigurationError

from .settings import SCORE_MAX, SCORE_MIN, ScoringSettings, scoring_settings

LabelT = TypeVar("LabelT")


@dataclass(frozen=True)
class Band(Generic[LabelT]):
    lower: int
    upper: int
    label: LabelT

    def contains(self, score: int) -> bool:
        return self.lower <= score < self.upper


def build_bands(
    rows: Sequence[Tuple[int, int, LabelT]],
    table: str,
) -> List[Band[LabelT]]:
    """
    Build and validate a band table.

    Args:
        rows: (min_inclusive, max_exclusive, label) tuples in ascending order
        table: Table name used in error messages

    Returns:
        The validated bands

    Raises:
        ConfigurationError: On empty tables, gaps, overlaps, unordered or
            empty bands, or coverage that does not span 0-1000
    """
    if not rows:
        raise ConfigurationError(f"{table} table is empty")

    bands = [Band(lower, upper, label) for lower, upper, label in rows]

    for band in bands:
        if band.lower >= band.upper:
            raise ConfigurationError(
                f"{table} band {band.label} is empty: [{band.lower}, {band.upper})"
            )

    if bands[0].lower != SCORE_MIN:
        raise ConfigurationError(f"{table} table must start at {SCORE_MIN}")

    for previous, current in zip(bands, bands[1:]):
        if current.lower > previous.upper:
            raise ConfigurationError(
                f"{table} table has a gap between {previous.upper} and {current.lower}"
            )
        if current.lower < previous.upper:
            raise ConfigurationError(
                f"{table} bands {previous.label} and {current.label} overlap or are unordered"
            )

    if bands[-1].upper <= SCORE_MAX:
        raise ConfigurationError(f"{table} table must cover {SCORE_MAX}")

    return bands


def _lookup(bands: Sequence[Band[LabelT]], score: int) -> LabelT:
    if not SCORE_MIN <= score <= SCORE_MAX:
        raise ValueError(f"Score must be between {SCORE_MIN} and {SCORE_MAX}, got {score}")
    for band in bands:
        if band.contains(score):
            return band.label
    # Unreachable for a validated table.
    raise ConfigurationError(f"No band contains score {score}")


class GradeClassifier:
    """Maps a composite score to its grade label."""

    def __init__(
        self,
        bands: Optional[Sequence[Tuple[int, int, str]]] = None,
        settings: ScoringSettings = scoring_settings,
    ):
        self.bands = build_bands(
            bands if bands is not None else settings.grade_bands,
            "grade",
        )
        labels = [band.label for band in self.bands]
        if len(set(labels)) != len(labels):
            raise ConfigurationError("grade labels must be unique")

    def classify(self, score: int) -> str:
        return _lookup(self.bands, score)


class RiskCategorizer:
    """
    Maps a composite score to a risk tier.

    The table must be monotonic: a higher band never carries a worse
    tier than a lower one.
    """

    def __init__(
        self,
        bands: Optional[Sequence[Tuple[int, int, RiskCategory]]] = None,
        settings: ScoringSettings = scoring_settings,
    ):
        self.bands = build_bands(
            bands if bands is not None else settings.risk_bands,
            "risk",
        )
        for previous, current in zip(self.bands, self.bands[1:]):
            if current.label.rank > previous.label.rank:
                raise ConfigurationError(
                    f"risk table is not monotonic: {current.label.value} at "
                    f"{current.lower} is worse than {previous.label.value} below it"
                )

    def categorize(self, score: int) -> RiskCategory:
        return _lookup(self.bands, score)


def check_consistency(grades: GradeClassifier, risks: RiskCategorizer) -> None:
    """
    Verify that the two tables agree.

    Every grade band must fall inside a single risk tier, and the tier
    must never improve as grades worsen.

    Raises:
        ConfigurationError: If a grade straddles two tiers or the order
            of tiers contradicts the order of grades
    """
    previous_rank = None
    for band in grades.bands:
        low_tier = risks.categorize(band.lower)
        high_tier = risks.categorize(min(band.upper - 1, SCORE_MAX))
        if low_tier is not high_tier:
            raise ConfigurationError(
                f"grade {band.label} spans risk tiers {low_tier.value} and {high_tier.value}"
            )
        if previous_rank is not None and low_tier.rank > previous_rank:
            raise ConfigurationError(
                f"grade {band.label} maps to a worse tier than the grade below it"
            )
        previous_rank = low_tier.rank
