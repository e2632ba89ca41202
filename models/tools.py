"""Schemas for the Express Entry tools API (CRS calculator, test conversion, saved records)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.crs.crs_calculator import (
    DISCLAIMER,
    CanadianEducation,
    EducationLevel,
    EECriteria,
    LanguageScores,
)
from app.crs.language_tests import LangSkill, TestType

ToolType = Literal["ee-score", "path-selector"]


class CamelModel(BaseModel):
    """Accepts both camelCase (browser forms) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LanguageScoresIn(CamelModel):
    reading: float = Field(0, description="CLB/NCLC level (0-12)")
    writing: float = Field(0, description="CLB/NCLC level (0-12)")
    listening: float = Field(0, description="CLB/NCLC level (0-12)")
    speaking: float = Field(0, description="CLB/NCLC level (0-12)")

    def to_scores(self) -> LanguageScores:
        return LanguageScores(
            reading=self.reading,
            writing=self.writing,
            listening=self.listening,
            speaking=self.speaking,
        )


class EECriteriaIn(CamelModel):
    """
    Request body for POST /tools/ee-score/calculate.

    Only types and enumerated values are validated here. Numbers outside
    their range are accepted and clamped by the calculator.
    """

    age: float = Field(..., description="Age in years")
    has_spouse: bool = Field(False, description="Spouse or common-law partner accompanies")
    education_level: EducationLevel
    first_language_test: TestType
    first_language: LanguageScoresIn
    second_language_test: Optional[TestType] = None
    second_language: Optional[LanguageScoresIn] = None
    canadian_work_experience: float = Field(0, description="Years of skilled Canadian work (0-10)")
    foreign_work_experience: float = Field(0, description="Years of skilled foreign work (0-10)")
    certificate_of_qualification: bool = False
    spouse_education_level: Optional[EducationLevel] = None
    spouse_language_test: Optional[TestType] = None
    spouse_language: Optional[LanguageScoresIn] = None
    spouse_canadian_work_experience: Optional[float] = None
    sibling_in_canada: bool = False
    canadian_education: CanadianEducation = "none"
    nomination_certificate: bool = False

    def to_criteria(self) -> EECriteria:
        return EECriteria(
            age=self.age,
            has_spouse=self.has_spouse,
            education_level=self.education_level,
            first_language_test=self.first_language_test,
            first_language=self.first_language.to_scores(),
            second_language_test=self.second_language_test,
            second_language=self.second_language.to_scores() if self.second_language else None,
            canadian_work_experience=self.canadian_work_experience,
            foreign_work_experience=self.foreign_work_experience,
            certificate_of_qualification=self.certificate_of_qualification,
            spouse_education_level=self.spouse_education_level,
            spouse_language_test=self.spouse_language_test,
            spouse_language=self.spouse_language.to_scores() if self.spouse_language else None,
            spouse_canadian_work_experience=self.spouse_canadian_work_experience,
            sibling_in_canada=self.sibling_in_canada,
            canadian_education=self.canadian_education,
            nomination_certificate=self.nomination_certificate,
        )


class SkillPointsOut(BaseModel):
    reading: int
    writing: int
    listening: int
    speaking: int
    total: int


class SecondLanguagePointsOut(BaseModel):
    reading: int
    writing: int
    listening: int
    speaking: int
    raw_total: int
    capped_total: int
    cap: int = Field(..., description="24 single, 22 with spouse")


class CoreDetailsOut(BaseModel):
    age: int
    education: int
    first_language: SkillPointsOut
    second_language: SecondLanguagePointsOut
    canadian_work: int
    subtotal: int
    cap: int = Field(..., description="500 single, 460 with spouse")
    capped_subtotal: int


class SpouseDetailsOut(BaseModel):
    enabled: bool
    education: int
    language: SkillPointsOut
    canadian_work: int
    subtotal: int
    cap: int
    capped_subtotal: int


class EducationTransferabilityOut(BaseModel):
    edu_lang: int = Field(..., description="Education with official language proficiency")
    edu_can_work: int = Field(..., description="Education with Canadian work experience")
    subtotal: int
    cap: int
    capped_subtotal: int


class ForeignWorkTransferabilityOut(BaseModel):
    foreign_lang: int = Field(..., description="Foreign work with official language proficiency")
    foreign_can: int = Field(..., description="Foreign work with Canadian work experience")
    subtotal: int
    cap: int
    capped_subtotal: int


class TransferabilityDetailsOut(BaseModel):
    education: EducationTransferabilityOut
    foreign_work: ForeignWorkTransferabilityOut
    certificate_of_qualification: int
    subtotal: int
    cap: int
    capped_subtotal: int


class AdditionalDetailsOut(BaseModel):
    nomination: int
    french: int
    canadian_education: int
    sibling: int
    subtotal: int
    cap: int
    capped_subtotal: int


class CRSDetailsOut(BaseModel):
    core: CoreDetailsOut
    spouse: SpouseDetailsOut
    transferability: TransferabilityDetailsOut
    additional: AdditionalDetailsOut


class CRSBreakdownOut(BaseModel):
    core: int
    spouse: int
    transferability: int
    additional: int


class CRSResultOut(BaseModel):
    """Response for POST /tools/ee-score/calculate."""

    total: int = Field(..., description="Total CRS score (max 1200)")
    breakdown: CRSBreakdownOut = Field(..., description="Capped score per section")
    details: CRSDetailsOut = Field(..., description="Every factor behind each section score")
    disclaimer: str = Field(default=DISCLAIMER, description="Legal disclaimer")


class ConvertRequest(CamelModel):
    test_type: TestType
    skill: LangSkill
    raw_score: Optional[float] = None


class ConvertResponse(BaseModel):
    test_type: str
    skill: str
    raw_score: Optional[float]
    clb: int
    scale: str = Field(..., description="CLB for English tests, NCLC for French tests")


class RawScoresIn(CamelModel):
    reading: Optional[float] = None
    writing: Optional[float] = None
    listening: Optional[float] = None
    speaking: Optional[float] = None


class ConvertScoresRequest(CamelModel):
    test_type: TestType
    scores: RawScoresIn


class LanguageScoresOut(BaseModel):
    test_type: str
    scale: str
    reading: int
    writing: int
    listening: int
    speaking: int


class InputPropsOut(BaseModel):
    min: float
    max: float
    step: float
    placeholder: str


class TestConfigOut(BaseModel):
    id: str
    label: str
    language: str
    scale: str
    input_props: dict[str, InputPropsOut]


class SaveToolRecordRequest(CamelModel):
    tool_type: ToolType
    input_payload: dict[str, Any]
    result_payload: dict[str, Any]

    @field_validator("input_payload", "result_payload")
    @classmethod
    def _not_empty(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("payload must not be empty")
        return v


class ToolRecordOut(BaseModel):
    id: str
    user_id: str
    tool_type: str
    input_payload: dict[str, Any]
    result_payload: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True


def tool_record_entity(record: dict) -> dict:
    """Convert a tool_records document to API response format"""
    return {
        "id": str(record["_id"]),
        "user_id": str(record["user_id"]),
        "tool_type": record["tool_type"],
        "input_payload": record.get("input_payload") or {},
        "result_payload": record.get("result_payload") or {},
        "created_at": record["created_at"],
    }
