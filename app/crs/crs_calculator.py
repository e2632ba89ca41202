"""
CRS (Comprehensive Ranking System) calculator for Express Entry.

Computes the four official CRS sections from a candidate profile whose
language scores are already on the CLB/NCLC scale (see
``app.crs.language_tests`` for raw test conversion):

    A. Core / human capital      max 500 single, 460 with spouse
    B. Spouse / common-law       max 40
    C. Skill transferability     max 100
    D. Additional points         max 600

Criteria follow the official IRCC calculator:
https://www.canada.ca/en/immigration-refugees-citizenship/services/immigrate-canada/express-entry/check-score/crs-criteria.html

As of March 25, 2025, job offer points are no longer awarded.

Every input is rounded and clamped before scoring, so any profile produces a
total in 0..1200. Nothing here raises on bad numbers and nothing keeps state
between calls.

Legal disclaimer: This tool is for general guidance only. Official IRCC
system results govern.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field, replace
from types import MappingProxyType
from typing import Any, Literal, Mapping

logger = logging.getLogger(__name__)

EducationLevel = Literal[
    "none",
    "high_school",
    "one_year",
    "two_year",
    "bachelors",
    "two_or_more",
    "masters",
    "phd",
]
CanadianEducation = Literal["none", "1_or_2_years", "3_years_or_more"]

EDUCATION_LEVELS: tuple[str, ...] = (
    "none", "high_school", "one_year", "two_year",
    "bachelors", "two_or_more", "masters", "phd",
)

ENGLISH_TESTS = frozenset({"celpip", "ielts", "pte"})
FRENCH_TESTS = frozenset({"tef", "tcf"})

MAX_TOTAL = 1200
CORE_CAP_SINGLE = 500
CORE_CAP_SPOUSE = 460
SECOND_LANGUAGE_CAP_SINGLE = 24
SECOND_LANGUAGE_CAP_SPOUSE = 22
SPOUSE_CAP = 40
TRANSFERABILITY_BLOCK_CAP = 50
TRANSFERABILITY_CAP = 100
ADDITIONAL_CAP = 600

DISCLAIMER = (
    "This tool is for general guidance only. Official IRCC system results govern. "
    "See Canada.ca Express Entry CRS calculator. Not legal advice."
)


@dataclass(frozen=True)
class LanguageScores:
    """
    CLB/NCLC level (0-12) per skill for one language.

    Inputs may be fractional; ``normalize_criteria`` rounds them to whole levels.
    """

    reading: float = 0
    writing: float = 0
    listening: float = 0
    speaking: float = 0

    def all_at_least(self, level: int) -> bool:
        return (
            self.reading >= level
            and self.writing >= level
            and self.listening >= level
            and self.speaking >= level
        )


@dataclass(frozen=True)
class EECriteria:
    """
    Candidate profile for CRS computation.

    Optional fields left as None are absent and score nothing; that is not
    the same as an explicit 0 (e.g. ``spouse_canadian_work_experience=0``).
    Numbers may be fractional or out of range until ``normalize_criteria``
    rounds and clamps them.
    """

    age: float
    has_spouse: bool
    education_level: EducationLevel
    first_language_test: str
    first_language: LanguageScores
    second_language_test: str | None = None
    second_language: LanguageScores | None = None
    canadian_work_experience: float = 0
    foreign_work_experience: float = 0
    certificate_of_qualification: bool = False
    spouse_education_level: EducationLevel | None = None
    spouse_language_test: str | None = None
    spouse_language: LanguageScores | None = None
    spouse_canadian_work_experience: float | None = None
    sibling_in_canada: bool = False
    canadian_education: CanadianEducation = "none"
    nomination_certificate: bool = False


# --- Result / details ---


@dataclass(frozen=True)
class SkillPoints:
    reading: int = 0
    writing: int = 0
    listening: int = 0
    speaking: int = 0
    total: int = 0


@dataclass(frozen=True)
class SecondLanguagePoints:
    reading: int = 0
    writing: int = 0
    listening: int = 0
    speaking: int = 0
    raw_total: int = 0
    capped_total: int = 0
    cap: int = SECOND_LANGUAGE_CAP_SINGLE


@dataclass(frozen=True)
class CoreDetails:
    age: int
    education: int
    first_language: SkillPoints
    second_language: SecondLanguagePoints
    canadian_work: int
    subtotal: int
    cap: int
    capped_subtotal: int


@dataclass(frozen=True)
class SpouseDetails:
    enabled: bool
    education: int = 0
    language: SkillPoints = field(default_factory=SkillPoints)
    canadian_work: int = 0
    subtotal: int = 0
    cap: int = SPOUSE_CAP
    capped_subtotal: int = 0


@dataclass(frozen=True)
class EducationTransferability:
    edu_lang: int
    edu_can_work: int
    subtotal: int
    cap: int
    capped_subtotal: int


@dataclass(frozen=True)
class ForeignWorkTransferability:
    foreign_lang: int
    foreign_can: int
    subtotal: int
    cap: int
    capped_subtotal: int


@dataclass(frozen=True)
class TransferabilityDetails:
    education: EducationTransferability
    foreign_work: ForeignWorkTransferability
    certificate_of_qualification: int
    subtotal: int
    cap: int
    capped_subtotal: int


@dataclass(frozen=True)
class AdditionalDetails:
    nomination: int
    french: int
    canadian_education: int
    sibling: int
    subtotal: int
    cap: int
    capped_subtotal: int


@dataclass(frozen=True)
class CRSDetails:
    core: CoreDetails
    spouse: SpouseDetails
    transferability: TransferabilityDetails
    additional: AdditionalDetails


@dataclass(frozen=True)
class CRSBreakdown:
    core: int
    spouse: int
    transferability: int
    additional: int


@dataclass(frozen=True)
class CRSResult:
    """CRS computation result: total, section scores and every factor behind them."""

    total: int
    breakdown: CRSBreakdown
    details: CRSDetails

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# --- Point tables: (single, with spouse) ---

AGE_POINTS: Mapping[int, tuple[int, int]] = MappingProxyType({
    17: (0, 0),
    18: (99, 90),
    19: (105, 95),
    **{age: (110, 100) for age in range(20, 30)},
    30: (105, 95),
    31: (99, 90),
    32: (94, 85),
    33: (88, 80),
    34: (83, 75),
    35: (77, 70),
    36: (72, 65),
    37: (66, 60),
    38: (61, 55),
    39: (55, 50),
    40: (50, 45),
    41: (39, 35),
    42: (28, 25),
    43: (17, 15),
    44: (6, 5),
})

EDUCATION_POINTS: Mapping[str, tuple[int, int]] = MappingProxyType({
    "none": (0, 0),
    "high_school": (30, 28),
    "one_year": (90, 84),
    "two_year": (98, 91),
    "bachelors": (120, 112),
    "two_or_more": (128, 119),
    "masters": (135, 126),
    "phd": (150, 140),
})

# Indexed by years, 5+ share the last row
CANADIAN_WORK_POINTS: tuple[tuple[int, int], ...] = (
    (0, 0), (40, 35), (53, 46), (64, 56), (72, 63), (80, 70),
)

SPOUSE_EDUCATION_POINTS: Mapping[str, int] = MappingProxyType({
    "none": 0,
    "high_school": 2,
    "one_year": 6,
    "two_year": 7,
    "bachelors": 8,
    "two_or_more": 9,
    "masters": 10,
    "phd": 10,
})

SPOUSE_CANADIAN_WORK_POINTS: tuple[int, ...] = (0, 5, 7, 8, 9, 10)

CANADIAN_EDUCATION_POINTS: Mapping[str, int] = MappingProxyType({
    "none": 0,
    "1_or_2_years": 15,
    "3_years_or_more": 30,
})

NOMINATION_POINTS = 600
SIBLING_POINTS = 15
FRENCH_WITH_ENGLISH_POINTS = 50
FRENCH_ONLY_POINTS = 25

_TWO_OR_MORE = frozenset({"two_or_more", "masters", "phd"})
_POST_SECONDARY = frozenset({"one_year", "two_year", "bachelors", "two_or_more", "masters", "phd"})


# --- Normalization ---


def _to_int(n: Any) -> int:
    if isinstance(n, bool):
        return int(n)
    try:
        f = float(n)
    except OverflowError:
        # exact integer floor; the clamp that follows saturates it
        return math.floor(n)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(f):
        return 0
    return math.floor(f + 0.5)


def _clamp(n: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, n))


def _norm_age(age: Any) -> int:
    return _clamp(_to_int(age), 0, 99)


def _norm_years(years: Any) -> int:
    return _clamp(_to_int(years), 0, 10)


def _norm_lang(scores: LanguageScores) -> LanguageScores:
    return LanguageScores(
        reading=_clamp(_to_int(scores.reading), 0, 12),
        writing=_clamp(_to_int(scores.writing), 0, 12),
        listening=_clamp(_to_int(scores.listening), 0, 12),
        speaking=_clamp(_to_int(scores.speaking), 0, 12),
    )


def normalize_criteria(criteria: EECriteria) -> EECriteria:
    """Round and clamp every numeric field into the range its table covers."""
    return replace(
        criteria,
        age=_norm_age(criteria.age),
        canadian_work_experience=_norm_years(criteria.canadian_work_experience),
        foreign_work_experience=_norm_years(criteria.foreign_work_experience),
        first_language=_norm_lang(criteria.first_language),
        second_language=(
            _norm_lang(criteria.second_language) if criteria.second_language is not None else None
        ),
        spouse_language=(
            _norm_lang(criteria.spouse_language) if criteria.spouse_language is not None else None
        ),
        spouse_canadian_work_experience=(
            _norm_years(criteria.spouse_canadian_work_experience)
            if criteria.spouse_canadian_work_experience is not None
            else None
        ),
    )


# --- Factor tables ---


def _pick(pair: tuple[int, int], with_spouse: bool) -> int:
    single, spouse = pair
    return spouse if with_spouse else single


def age_points(age: int, with_spouse: bool) -> int:
    if age < 17 or age >= 45:
        return 0
    return _pick(AGE_POINTS[age], with_spouse)


def education_points(level: str, with_spouse: bool) -> int:
    return _pick(EDUCATION_POINTS.get(level, (0, 0)), with_spouse)


def first_language_points(clb: int, with_spouse: bool) -> int:
    if clb >= 10:
        return 32 if with_spouse else 34
    if clb == 9:
        return 29 if with_spouse else 31
    if clb == 8:
        return 22 if with_spouse else 23
    if clb == 7:
        return 16 if with_spouse else 17
    if clb == 6:
        return 8 if with_spouse else 9
    if clb in (4, 5):
        return 6
    return 0


def second_language_points(clb: int) -> int:
    if clb >= 9:
        return 6
    if clb >= 7:
        return 3
    if clb >= 5:
        return 1
    return 0


def canadian_work_points(years: int, with_spouse: bool) -> int:
    return _pick(CANADIAN_WORK_POINTS[_clamp(years, 0, 5)], with_spouse)


def spouse_language_points(clb: int) -> int:
    if clb >= 9:
        return 5
    if clb >= 7:
        return 3
    if clb >= 5:
        return 1
    return 0


def _skill_points(scores: LanguageScores, per_skill) -> SkillPoints:
    r = per_skill(scores.reading)
    w = per_skill(scores.writing)
    li = per_skill(scores.listening)
    s = per_skill(scores.speaking)
    return SkillPoints(reading=r, writing=w, listening=li, speaking=s, total=r + w + li + s)


# --- Sections ---


def _core_section(data: EECriteria) -> CoreDetails:
    s = data.has_spouse
    cap = CORE_CAP_SPOUSE if s else CORE_CAP_SINGLE
    l2_cap = SECOND_LANGUAGE_CAP_SPOUSE if s else SECOND_LANGUAGE_CAP_SINGLE

    age = age_points(data.age, s)
    education = education_points(data.education_level, s)
    first = _skill_points(data.first_language, lambda clb: first_language_points(clb, s))

    second = SecondLanguagePoints(cap=l2_cap)
    if data.second_language is not None:
        pts = _skill_points(data.second_language, second_language_points)
        second = SecondLanguagePoints(
            reading=pts.reading,
            writing=pts.writing,
            listening=pts.listening,
            speaking=pts.speaking,
            raw_total=pts.total,
            # the second-language cap applies before the section cap
            capped_total=min(pts.total, l2_cap),
            cap=l2_cap,
        )

    canadian_work = canadian_work_points(data.canadian_work_experience, s)
    subtotal = age + education + first.total + second.capped_total + canadian_work
    return CoreDetails(
        age=age,
        education=education,
        first_language=first,
        second_language=second,
        canadian_work=canadian_work,
        subtotal=subtotal,
        cap=cap,
        capped_subtotal=min(subtotal, cap),
    )


def _spouse_section(data: EECriteria) -> SpouseDetails:
    if not data.has_spouse:
        return SpouseDetails(enabled=False)

    education = 0
    if data.spouse_education_level is not None:
        education = SPOUSE_EDUCATION_POINTS.get(data.spouse_education_level, 0)

    language = SkillPoints()
    if data.spouse_language is not None:
        language = _skill_points(data.spouse_language, spouse_language_points)

    canadian_work = 0
    if data.spouse_canadian_work_experience is not None:
        canadian_work = SPOUSE_CANADIAN_WORK_POINTS[_clamp(data.spouse_canadian_work_experience, 0, 5)]

    subtotal = education + language.total + canadian_work
    return SpouseDetails(
        enabled=True,
        education=education,
        language=language,
        canadian_work=canadian_work,
        subtotal=subtotal,
        cap=SPOUSE_CAP,
        capped_subtotal=min(subtotal, SPOUSE_CAP),
    )


def _education_language(level: str, lang: LanguageScores) -> int:
    two_or_more = level in _TWO_OR_MORE
    post_secondary = level in _POST_SECONDARY
    if lang.all_at_least(9):
        if two_or_more:
            return 50
        if post_secondary:
            return 25
    elif lang.all_at_least(7):
        if two_or_more:
            return 25
        if post_secondary:
            return 13
    return 0


def _education_canadian_work(level: str, canadian_years: int) -> int:
    two_or_more = level in _TWO_OR_MORE
    post_secondary = level in _POST_SECONDARY
    if canadian_years >= 2:
        if two_or_more:
            return 50
        if post_secondary:
            return 25
    elif canadian_years == 1:
        if two_or_more:
            return 25
        if post_secondary:
            return 13
    return 0


def _foreign_work_language(foreign_years: int, lang: LanguageScores) -> int:
    if foreign_years >= 3:
        if lang.all_at_least(9):
            return 50
        if lang.all_at_least(7):
            return 25
    elif foreign_years >= 1:
        if lang.all_at_least(9):
            return 25
        if lang.all_at_least(7):
            return 13
    return 0


def _foreign_work_canadian_work(foreign_years: int, canadian_years: int) -> int:
    if foreign_years < 1 or canadian_years < 1:
        return 0
    if foreign_years >= 3:
        return 50 if canadian_years >= 2 else 25
    return 25 if canadian_years >= 2 else 13


def _certificate_points(held: bool, lang: LanguageScores) -> int:
    if not held:
        return 0
    if lang.all_at_least(7):
        return 50
    if lang.all_at_least(5):
        return 25
    return 0


def _transferability_section(data: EECriteria) -> TransferabilityDetails:
    lang = data.first_language

    edu_lang = _education_language(data.education_level, lang)
    edu_can_work = _education_canadian_work(data.education_level, data.canadian_work_experience)
    education = EducationTransferability(
        edu_lang=edu_lang,
        edu_can_work=edu_can_work,
        subtotal=edu_lang + edu_can_work,
        cap=TRANSFERABILITY_BLOCK_CAP,
        capped_subtotal=min(edu_lang + edu_can_work, TRANSFERABILITY_BLOCK_CAP),
    )

    foreign_lang = _foreign_work_language(data.foreign_work_experience, lang)
    foreign_can = _foreign_work_canadian_work(
        data.foreign_work_experience, data.canadian_work_experience
    )
    foreign_work = ForeignWorkTransferability(
        foreign_lang=foreign_lang,
        foreign_can=foreign_can,
        subtotal=foreign_lang + foreign_can,
        cap=TRANSFERABILITY_BLOCK_CAP,
        capped_subtotal=min(foreign_lang + foreign_can, TRANSFERABILITY_BLOCK_CAP),
    )

    certificate = _certificate_points(data.certificate_of_qualification, lang)
    subtotal = education.capped_subtotal + foreign_work.capped_subtotal + certificate
    return TransferabilityDetails(
        education=education,
        foreign_work=foreign_work,
        certificate_of_qualification=certificate,
        subtotal=subtotal,
        cap=TRANSFERABILITY_CAP,
        capped_subtotal=min(subtotal, TRANSFERABILITY_CAP),
    )


def _french_points(data: EECriteria) -> int:
    """
    Bonus for strong French (NCLC 7+ in all skills).

    50 when the other language is English at CLB 5+ in all skills, 25
    otherwise. If both languages are tagged with the same family the first
    one decides, and the second language is ignored.
    """
    french: LanguageScores | None = None
    english: LanguageScores | None = None

    if data.first_language_test in FRENCH_TESTS:
        french = data.first_language
        if data.second_language is not None and data.second_language_test in ENGLISH_TESTS:
            english = data.second_language
    else:
        english = data.first_language
        if data.second_language is not None and data.second_language_test in FRENCH_TESTS:
            french = data.second_language

    if french is None or not french.all_at_least(7):
        return 0
    if english is not None and english.all_at_least(5):
        return FRENCH_WITH_ENGLISH_POINTS
    return FRENCH_ONLY_POINTS


def _additional_section(data: EECriteria) -> AdditionalDetails:
    nomination = NOMINATION_POINTS if data.nomination_certificate else 0
    french = _french_points(data)
    canadian_education = CANADIAN_EDUCATION_POINTS.get(data.canadian_education, 0)
    sibling = SIBLING_POINTS if data.sibling_in_canada else 0

    subtotal = nomination + french + canadian_education + sibling
    return AdditionalDetails(
        nomination=nomination,
        french=french,
        canadian_education=canadian_education,
        sibling=sibling,
        subtotal=subtotal,
        cap=ADDITIONAL_CAP,
        capped_subtotal=min(subtotal, ADDITIONAL_CAP),
    )


def compute_crs(criteria: EECriteria) -> CRSResult:
    """
    Compute the CRS score for a candidate profile.

    The input is not modified; a normalized copy is scored. Each section is
    capped on its own, then the sum is capped at 1200.
    """
    data = normalize_criteria(criteria)

    core = _core_section(data)
    spouse = _spouse_section(data)
    transferability = _transferability_section(data)
    additional = _additional_section(data)

    breakdown = CRSBreakdown(
        core=core.capped_subtotal,
        spouse=spouse.capped_subtotal,
        transferability=transferability.capped_subtotal,
        additional=additional.capped_subtotal,
    )
    total = min(
        MAX_TOTAL,
        breakdown.core + breakdown.spouse + breakdown.transferability + breakdown.additional,
    )
    logger.debug("CRS total=%s breakdown=%s", total, breakdown)

    return CRSResult(
        total=total,
        breakdown=breakdown,
        details=CRSDetails(
            core=core,
            spouse=spouse,
            transferability=transferability,
            additional=additional,
        ),
    )


score = compute_crs
