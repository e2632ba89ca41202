"""
Language test → CLB / NCLC conversion for Express Entry.

Each supported test maps a raw score for one skill onto the 0-12 Canadian
Language Benchmark scale (NCLC for French tests). Band tables follow the
IRCC equivalency charts:
https://www.canada.ca/en/immigration-refugees-citizenship/services/immigrate-canada/express-entry/documents/language-requirements/test-equivalency-charts.html

The converter never raises. Anything it cannot read, and anything below the
lowest band, converts to 0.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping

from app.crs.crs_calculator import LanguageScores

logger = logging.getLogger(__name__)

TestType = Literal["celpip", "ielts", "pte", "tef", "tcf"]
LangSkill = Literal["reading", "writing", "listening", "speaking"]
LanguageFamily = Literal["en", "fr"]

LANGUAGE_SKILLS: tuple[LangSkill, ...] = ("reading", "writing", "listening", "speaking")

# (min raw score, clb), highest threshold first
Band = tuple[float, int]


@dataclass(frozen=True)
class InputProps:
    """Input widget range for one test/skill."""

    min: float
    max: float
    step: float
    placeholder: str


@dataclass(frozen=True)
class TestConfig:
    label: str
    language: LanguageFamily
    to_clb: Callable[[LangSkill, float], int]
    input_props: Callable[[LangSkill], InputProps]


def _to_number(score: Any) -> float | None:
    if score is None or isinstance(score, bool):
        return None
    try:
        s = float(score)
    except OverflowError:
        # finite but past float range; saturates to the top or bottom band
        return sys.float_info.max if score > 0 else -sys.float_info.max
    except (TypeError, ValueError):
        return None
    if not math.isfinite(s):
        return None
    return s


def _round(s: float) -> int:
    # half-up, same as the score sheets
    return math.floor(s + 0.5)


def _to_band(score: float, bands: tuple[Band, ...]) -> int:
    for threshold, clb in bands:
        if score >= threshold:
            return clb
    return 0


# --- IELTS General Training (half-band scores, 0-9) ---
_IELTS_BANDS: Mapping[str, tuple[Band, ...]] = MappingProxyType({
    "reading": (
        (8.0, 10), (7.0, 9), (6.5, 8), (6.0, 7), (5.0, 6), (4.0, 5), (3.5, 4),
    ),
    "listening": (
        (8.5, 10), (8.0, 9), (7.5, 8), (6.0, 7), (5.5, 6), (5.0, 5), (4.5, 4),
    ),
    "writing": (
        (7.5, 10), (7.0, 9), (6.5, 8), (6.0, 7), (5.5, 6), (5.0, 5), (4.0, 4),
    ),
    "speaking": (
        (7.5, 10), (7.0, 9), (6.5, 8), (6.0, 7), (5.5, 6), (5.0, 5), (4.0, 4),
    ),
})

# --- PTE Core (10-90) ---
_PTE_BANDS: Mapping[str, tuple[Band, ...]] = MappingProxyType({
    "reading": (
        (88, 10), (78, 9), (69, 8), (60, 7), (51, 6), (42, 5), (33, 4), (24, 3),
    ),
    "writing": (
        (90, 10), (88, 9), (79, 8), (69, 7), (60, 6), (51, 5), (41, 4), (32, 3),
    ),
    "listening": (
        (89, 10), (82, 9), (71, 8), (60, 7), (50, 6), (39, 5), (28, 4), (18, 3),
    ),
    "speaking": (
        (89, 10), (84, 9), (76, 8), (68, 7), (59, 6), (51, 5), (42, 4), (34, 3),
    ),
})

# --- TEF Canada, "équivalence ancien score" scale still used by Express Entry ---
_TEF_BANDS: Mapping[str, tuple[Band, ...]] = MappingProxyType({
    "reading": (
        (263, 10), (248, 9), (233, 8), (207, 7), (181, 6), (151, 5), (121, 4),
    ),
    "writing": (
        (393, 10), (371, 9), (349, 8), (310, 7), (271, 6), (226, 5), (181, 4),
    ),
    "listening": (
        (316, 10), (298, 9), (280, 8), (249, 7), (217, 6), (181, 5), (145, 4),
    ),
    "speaking": (
        (393, 10), (371, 9), (349, 8), (310, 7), (271, 6), (226, 5), (181, 4),
    ),
})

# --- TCF Canada: reading/listening are 0-699 scores, writing/speaking are levels 4-20 ---
_TCF_BANDS: Mapping[str, tuple[Band, ...]] = MappingProxyType({
    "reading": (
        (549, 10), (524, 9), (499, 8), (453, 7), (406, 6), (375, 5), (342, 4),
    ),
    "listening": (
        (549, 10), (523, 9), (503, 8), (458, 7), (398, 6), (369, 5), (331, 4),
    ),
    "writing": (
        (16, 10), (14, 9), (12, 8), (10, 7), (7, 6), (6, 5), (4, 4),
    ),
    "speaking": (
        (16, 10), (14, 9), (12, 8), (10, 7), (7, 6), (6, 5), (4, 4),
    ),
})


def _celpip_to_clb(skill: LangSkill, score: float) -> int:
    # CELPIP levels are CLB levels. 11 and 12 are kept for display; the CRS
    # tables score everything from 10 up the same.
    s = _round(score)
    if s >= 12:
        return 12
    if s >= 4:
        return s
    return 0


def _ielts_to_clb(skill: LangSkill, score: float) -> int:
    bands = _IELTS_BANDS.get(skill)
    return _to_band(score, bands) if bands else 0


def _banded(table: Mapping[str, tuple[Band, ...]]) -> Callable[[LangSkill, float], int]:
    """Build a converter that rounds to a whole score before banding."""

    def _convert(skill: LangSkill, score: float) -> int:
        bands = table.get(skill)
        if not bands:
            return 0
        return _to_band(_round(score), bands)

    return _convert


def _fixed_props(props: InputProps) -> Callable[[LangSkill], InputProps]:
    return lambda _skill: props


def _tef_props(skill: LangSkill) -> InputProps:
    if skill == "reading":
        return InputProps(0, 300, 1, "121-300")
    if skill == "listening":
        return InputProps(0, 360, 1, "145-360")
    return InputProps(0, 450, 1, "181-450")


def _tcf_props(skill: LangSkill) -> InputProps:
    if skill in ("writing", "speaking"):
        return InputProps(0, 20, 1, "4-20")
    return InputProps(0, 699, 1, "342-699" if skill == "reading" else "331-699")


TEST_CONFIGS: Mapping[str, TestConfig] = MappingProxyType({
    "celpip": TestConfig(
        label="CELPIP-G (English)",
        language="en",
        to_clb=_celpip_to_clb,
        input_props=_fixed_props(InputProps(0, 12, 1, "4-12")),
    ),
    "ielts": TestConfig(
        label="IELTS General Training (English)",
        language="en",
        to_clb=_ielts_to_clb,
        input_props=_fixed_props(InputProps(0, 9, 0.5, "0-9.0")),
    ),
    "pte": TestConfig(
        label="PTE Core (English)",
        language="en",
        to_clb=_banded(_PTE_BANDS),
        input_props=_fixed_props(InputProps(0, 90, 1, "0-90")),
    ),
    "tef": TestConfig(
        label="TEF Canada (Français)",
        language="fr",
        to_clb=_banded(_TEF_BANDS),
        input_props=_tef_props,
    ),
    "tcf": TestConfig(
        label="TCF Canada (Français)",
        language="fr",
        to_clb=_banded(_TCF_BANDS),
        input_props=_tcf_props,
    ),
})


def convert(test_type: str, skill: str, raw_score: Any) -> int:
    """
    Convert one raw test score to CLB/NCLC.

    Thresholds are inclusive lower bounds: a score exactly on a threshold
    earns that band. Unknown tests or skills, unreadable scores, and scores
    below the lowest band all return 0.
    """
    config = TEST_CONFIGS.get(test_type)
    if config is None or skill not in LANGUAGE_SKILLS:
        logger.debug("No conversion for test=%r skill=%r", test_type, skill)
        return 0
    score = _to_number(raw_score)
    if score is None:
        return 0
    return config.to_clb(skill, score)


def convert_scores(test_type: str, raw: Mapping[str, Any]) -> LanguageScores:
    """Convert all four skills of one test result. Missing skills become 0."""
    return LanguageScores(**{
        skill: convert(test_type, skill, raw.get(skill)) for skill in LANGUAGE_SKILLS
    })


def language_of(test_type: str | None) -> LanguageFamily | None:
    config = TEST_CONFIGS.get(test_type) if test_type else None
    return config.language if config else None


def is_french(test_type: str | None) -> bool:
    return language_of(test_type) == "fr"


def is_english(test_type: str | None) -> bool:
    return language_of(test_type) == "en"


def scale_label(test_type: str | None) -> str:
    """CLB for English tests, NCLC for French ones."""
    return "NCLC" if is_french(test_type) else "CLB"


def input_props(test_type: str, skill: str) -> InputProps | None:
    config = TEST_CONFIGS.get(test_type)
    if config is None or skill not in LANGUAGE_SKILLS:
        return None
    return config.input_props(skill)
