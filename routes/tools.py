"""
Express Entry tools API.

Public endpoints run the CRS calculator and the language test converter.
Saving and listing results requires an access token.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from bson import ObjectId

from app.auth.deps import get_current_user
from app.db import TOOL_RECORDS, get_db
from app.crs.crs_calculator import compute_crs
from app.crs.language_tests import (
    LANGUAGE_SKILLS,
    TEST_CONFIGS,
    convert,
    convert_scores,
    input_props,
    scale_label,
)
from models.tools import (
    ConvertRequest,
    ConvertResponse,
    ConvertScoresRequest,
    CRSResultOut,
    EECriteriaIn,
    LanguageScoresOut,
    SaveToolRecordRequest,
    TestConfigOut,
    ToolRecordOut,
    tool_record_entity,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


def history_limit() -> int:
    return int(os.getenv("HISTORY_LIMIT", "100"))


@router.get("/ee-score/tests", response_model=list[TestConfigOut])
async def list_language_tests():
    """Supported language tests with their score ranges per skill."""
    return [
        TestConfigOut(
            id=test_type,
            label=config.label,
            language=config.language,
            scale=scale_label(test_type),
            input_props={
                skill: asdict(input_props(test_type, skill)) for skill in LANGUAGE_SKILLS
            },
        )
        for test_type, config in TEST_CONFIGS.items()
    ]


@router.post("/ee-score/convert", response_model=ConvertResponse)
async def convert_score(body: ConvertRequest):
    """Convert one raw test score to CLB/NCLC. Unreadable or too-low scores give 0."""
    return ConvertResponse(
        test_type=body.test_type,
        skill=body.skill,
        raw_score=body.raw_score,
        clb=convert(body.test_type, body.skill, body.raw_score),
        scale=scale_label(body.test_type),
    )


@router.post("/ee-score/convert-scores", response_model=LanguageScoresOut)
async def convert_all_scores(body: ConvertScoresRequest):
    scores = convert_scores(body.test_type, body.scores.model_dump())
    return LanguageScoresOut(
        test_type=body.test_type,
        scale=scale_label(body.test_type),
        reading=scores.reading,
        writing=scores.writing,
        listening=scores.listening,
        speaking=scores.speaking,
    )


@router.post("/ee-score/calculate", response_model=CRSResultOut)
async def calculate_crs(body: EECriteriaIn) -> CRSResultOut:
    """
    Compute the Express Entry CRS score.

    Language scores must already be CLB/NCLC levels; use
    `/tools/ee-score/convert-scores` for raw test results. Out-of-range
    numbers are clamped rather than rejected.

    CRS criteria follow the official [Canada.ca calculator](https://www.canada.ca/en/immigration-refugees-citizenship/services/immigrate-canada/express-entry/check-score.html).
    Job offer points are not awarded (removed March 2025).
    """
    result = compute_crs(body.to_criteria())
    data = result.to_dict()
    return CRSResultOut(total=data["total"], breakdown=data["breakdown"], details=data["details"])


@router.post("/save", response_model=ToolRecordOut)
async def save_record(
    body: SaveToolRecordRequest,
    request: Request,
    user: dict = Depends(get_current_user),
):
    """Save a calculator input and its result to the current user's history."""
    db = get_db(request)
    user_id = ObjectId(user["id"])

    doc = {
        "user_id": user_id,
        "tool_type": body.tool_type,
        "input_payload": body.input_payload,
        "result_payload": body.result_payload,
        "created_at": datetime.now(timezone.utc),
    }
    result = await db[TOOL_RECORDS].insert_one(doc)
    record = await db[TOOL_RECORDS].find_one({"_id": result.inserted_id})
    logger.info("Saved %s record %s for user %s", body.tool_type, result.inserted_id, user["id"])
    return tool_record_entity(record)


@router.get("/history", response_model=list[ToolRecordOut])
async def get_history(request: Request, user: dict = Depends(get_current_user)):
    """Current user's saved records, newest first."""
    db = get_db(request)
    user_id = ObjectId(user["id"])

    records = []
    cursor = db[TOOL_RECORDS].find({"user_id": user_id}).sort("created_at", -1).limit(history_limit())
    async for record in cursor:
        records.append(tool_record_entity(record))
    return records
