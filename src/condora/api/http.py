# src/condora/api/http.py
from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile

from condora.adapters.config import config
from condora.adapters.logging_utils import get_logger
from condora.adapters.sql_repo import SqlPropertyRepository
from condora.domain.borrower import BorrowerProfile
from condora.domain.errors import ExtractionError, ExtractionTimeoutError
from condora.domain.policy import LendingPolicy, policy_from_config
from condora.domain.ports import PropertyRepository
from condora.pipelines.core import import_from_pdf, import_from_url
from condora.services.affordability import calculate_eligibility
from condora.services.importer import ImportOrchestrator
from condora.services.validation import validate_record
from .schemas import (
    ImportRequest,
    ImportUrlRequest,
    MortgageRequest,
    PropertySearch,
    snake_keys,
)

logger = get_logger(__name__)

app = FastAPI(title="Condora")


# -------------------------------------------------------------------
# Dependencies (overridable in tests)
# -------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_property_repo() -> PropertyRepository:
    return SqlPropertyRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_policy() -> LendingPolicy:
    return policy_from_config(config)


def _extraction_http_error(err: ExtractionError) -> HTTPException:
    status = 504 if isinstance(err, ExtractionTimeoutError) else 502
    logger.warning(
        "extraction_failed",
        extra={"context": {"status": status, "error": str(err), "kind": type(err).__name__}},
    )
    return HTTPException(status_code=status, detail=str(err))


# -----------------------------
# Mortgage
# -----------------------------
@app.post("/mortgage/calculate")
def mortgage_calculate(
    payload: MortgageRequest,
    policy: LendingPolicy = Depends(get_policy),
) -> dict[str, Any]:
    profile = BorrowerProfile.model_validate(payload.profile_data())
    return calculate_eligibility(profile, policy).to_dict()


# -----------------------------
# Admin: validation + import
# -----------------------------
@app.post("/admin/validate")
def admin_validate(record: dict[str, Any]) -> dict[str, Any]:
    return validate_record(snake_keys(record)).to_dict()


@app.post("/admin/import")
def admin_import(
    body: ImportRequest,
    repo: PropertyRepository = Depends(get_property_repo),
) -> dict[str, Any]:
    result = ImportOrchestrator(repo).import_record(
        snake_keys(body.record),
        snake_keys(body.overrides),
        force_reimport=body.force_reimport,
    )
    return result.to_dict()


@app.post("/admin/import/url")
async def admin_import_url(
    body: ImportUrlRequest,
    repo: PropertyRepository = Depends(get_property_repo),
) -> dict[str, Any]:
    try:
        result = await import_from_url(
            body.url,
            repo=repo,
            overrides=snake_keys(body.overrides),
            force_reimport=body.force_reimport,
            timeout_s=body.timeout_s,
        )
    except ExtractionError as e:
        raise _extraction_http_error(e) from e
    return result.to_dict()


@app.post("/admin/import/pdf")
async def admin_import_pdf(
    file: UploadFile = File(...),
    force_reimport: bool = Form(False),
    overrides: str | None = Form(None, description="JSON object of field overrides"),
    repo: PropertyRepository = Depends(get_property_repo),
) -> dict[str, Any]:
    try:
        parsed = json.loads(overrides) if overrides else {}
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"overrides is not valid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail="overrides must be a JSON object")

    data = await file.read()
    try:
        result = await import_from_pdf(
            data,
            repo=repo,
            overrides=snake_keys(parsed),
            force_reimport=force_reimport,
        )
    except ExtractionError as e:
        raise _extraction_http_error(e) from e
    return result.to_dict()


# -----------------------------
# Properties
# -----------------------------
@app.get("/properties")
def list_properties(
    limit: int = Query(200, ge=1, le=1000),
    repo: PropertyRepository = Depends(get_property_repo),
) -> list[dict[str, Any]]:
    return [dict(r) for r in repo.list_all(limit=limit)]


@app.post("/properties/search")
def search_properties(
    body: PropertySearch,
    repo: PropertyRepository = Depends(get_property_repo),
) -> list[dict[str, Any]]:
    filters = body.model_dump(exclude={"limit"})
    return [dict(r) for r in repo.search(**filters, limit=body.limit)]


@app.get("/properties/{property_id}")
def get_property(
    property_id: int,
    repo: PropertyRepository = Depends(get_property_repo),
) -> dict[str, Any]:
    rec = repo.get(property_id)
    if rec is None:
        raise HTTPException(status_code=404, detail=f"property {property_id} not found")
    return dict(rec)
