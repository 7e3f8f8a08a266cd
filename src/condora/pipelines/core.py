# src/condora/pipelines/core.py

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, TypeVar

from loguru import logger

from condora.adapters.config import config
from condora.adapters.documents import HttpDocumentSource, PdfDocumentSource
from condora.domain.errors import ExtractionTimeoutError
from condora.domain.listing import ImportResult, ScrapedRecord, ValidationReport
from condora.domain.ports import BinaryDocumentSource, DocumentSource, PropertyRepository
from condora.extraction.extractor import FieldExtractor
from condora.services.importer import ImportOrchestrator
from condora.services.validation import validate_record

T = TypeVar("T")


async def _bounded(fn: Callable[[], T], timeout_s: float | None, what: str) -> T:
    """Run blocking work in a thread; fail with ExtractionTimeoutError past the budget."""
    budget = timeout_s if timeout_s is not None else config.IMPORT_TIMEOUT_S
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn), timeout=budget)
    except asyncio.TimeoutError as err:
        logger.warning("Extraction timed out", what=what, timeout_s=budget)
        raise ExtractionTimeoutError(f"{what} timed out after {budget:g}s") from err


# ---------------------------
# 1. EXTRACT
# ---------------------------

async def extract_url(
    url: str,
    *,
    source: DocumentSource | None = None,
    extractor: FieldExtractor | None = None,
    timeout_s: float | None = None,
) -> ScrapedRecord:
    src = source or HttpDocumentSource()
    ext = extractor or FieldExtractor()

    def work() -> ScrapedRecord:
        return ext.extract(src.fetch(url))

    logger.info("Extracting listing page", url=url)
    return await _bounded(work, timeout_s, f"extracting {url}")


async def extract_pdf(
    data: bytes,
    *,
    source: BinaryDocumentSource | None = None,
    extractor: FieldExtractor | None = None,
    timeout_s: float | None = None,
) -> ScrapedRecord:
    src = source or PdfDocumentSource()
    ext = extractor or FieldExtractor()

    def work() -> ScrapedRecord:
        return ext.extract(src.read(data))

    logger.info("Extracting PDF brochure", size=len(data))
    return await _bounded(work, timeout_s, "extracting PDF")


# ---------------------------
# 2. PREVIEW (no persistence)
# ---------------------------

async def preview_url(
    url: str,
    *,
    source: DocumentSource | None = None,
    timeout_s: float | None = None,
) -> tuple[ScrapedRecord, ValidationReport]:
    record = await extract_url(url, source=source, timeout_s=timeout_s)
    report = validate_record(record)
    logger.info("Preview ready", url=url, missing=report.missing_fields)
    return record, report


# ---------------------------
# 3. IMPORT
# ---------------------------

async def import_scraped(
    record: Mapping[str, Any],
    *,
    repo: PropertyRepository,
    overrides: Mapping[str, Any] | None = None,
    force_reimport: bool = False,
    orchestrator: ImportOrchestrator | None = None,
) -> ImportResult:
    orch = orchestrator or ImportOrchestrator(repo)
    result = await asyncio.to_thread(
        orch.import_record, record, overrides, force_reimport=force_reimport
    )
    logger.info(
        "Import finished",
        project_name=result.project_name,
        success=result.success,
        imported=result.imported,
    )
    return result


async def import_from_url(
    url: str,
    *,
    repo: PropertyRepository,
    overrides: Mapping[str, Any] | None = None,
    force_reimport: bool = False,
    source: DocumentSource | None = None,
    orchestrator: ImportOrchestrator | None = None,
    timeout_s: float | None = None,
) -> ImportResult:
    """
    Fetch -> extract -> import. ExtractionError subclasses propagate; storage
    problems come back inside the ImportResult.
    """
    record = await extract_url(url, source=source, timeout_s=timeout_s)
    return await import_scraped(
        record,
        repo=repo,
        overrides=overrides,
        force_reimport=force_reimport,
        orchestrator=orchestrator,
    )


async def import_from_pdf(
    data: bytes,
    *,
    repo: PropertyRepository,
    overrides: Mapping[str, Any] | None = None,
    force_reimport: bool = False,
    source: BinaryDocumentSource | None = None,
    orchestrator: ImportOrchestrator | None = None,
    timeout_s: float | None = None,
) -> ImportResult:
    record = await extract_pdf(data, source=source, timeout_s=timeout_s)
    return await import_scraped(
        record,
        repo=repo,
        overrides=overrides,
        force_reimport=force_reimport,
        orchestrator=orchestrator,
    )
