# src/condora/services/importer.py
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from condora.adapters.config import config
from condora.adapters.logging_utils import get_logger
from condora.domain.errors import DuplicateProjectError
from condora.domain.listing import ImportResult, PropertyRecord, UnitMixEntry
from condora.domain.ports import PropertyRepository
from condora.extraction.rules import decimal_number, format_size_range
from condora.services.validation import validate_record

logger = get_logger(__name__)


# scraped key -> canonical key, where they differ
_FIELD_MAP = {
    "address": "location",
    "price_from": "price",
    "psf_from": "psf",
    "bedroom_types": "bedroom_type",
}

_FLOAT_FIELDS = {"price", "psf", "site_area_sqm", "lat", "lng", "expected_roi"}
_INT_FIELDS = {"no_of_units", "no_of_blocks", "bedrooms", "bathrooms", "sqft"}
_BOOL_FIELDS = {"is_featured", "is_overseas"}
_LIST_FIELDS = {"nearby_schools", "nearby_mrt", "nearby_amenities", "image_urls"}

# override aliases accepted from admin forms
_OVERRIDE_ALIASES = {
    "featured": "is_featured",
    "overseas": "is_overseas",
    "expectedRoi": "expected_roi",
    "agentName": "agent_name",
    "agentPhone": "agent_phone",
    "agentEmail": "agent_email",
    "projectDescription": "project_description",
    "projectName": "project_name",
}


def normalize_overrides(overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    return {_OVERRIDE_ALIASES.get(k, k): v for k, v in (overrides or {}).items()}


def _to_float(x: Any) -> float | None:
    if x is None or isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        return float(x)
    num = decimal_number(str(x))
    return float(num) if num is not None else None


def _to_int(x: Any) -> int | None:
    f = _to_float(x)
    return int(f) if f is not None else None


def _to_bool(x: Any) -> bool:
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in {"true", "1", "yes", "y", "on"}


def _to_list(x: Any) -> list[Any]:
    if x is None:
        return []
    if isinstance(x, (list, tuple)):
        return list(x)
    return [s.strip() for s in str(x).split(",") if s.strip()]


def _coerce(field: str, value: Any) -> Any:
    if field in _FLOAT_FIELDS:
        return _to_float(value)
    if field in _INT_FIELDS:
        return _to_int(value)
    if field in _BOOL_FIELDS:
        return _to_bool(value)
    if field in _LIST_FIELDS:
        return _to_list(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == []


@dataclass(frozen=True)
class ImportDefaults:
    agent_name: str
    agent_phone: str
    agent_email: str
    lat: float
    lng: float
    image_url: str
    expected_roi: float
    status: str = "available"
    launch_type: str = "new-launch"
    country: str = "Singapore"
    property_type: str = "Condominium"
    is_featured: bool = False
    is_overseas: bool = False

    @classmethod
    def from_config(cls, cfg=config) -> "ImportDefaults":
        return cls(
            agent_name=cfg.DEFAULT_AGENT_NAME,
            agent_phone=cfg.DEFAULT_AGENT_PHONE,
            agent_email=cfg.DEFAULT_AGENT_EMAIL,
            lat=cfg.DEFAULT_LAT,
            lng=cfg.DEFAULT_LNG,
            image_url=cfg.DEFAULT_IMAGE_URL,
            expected_roi=cfg.DEFAULT_EXPECTED_ROI,
        )


def unit_mix_aggregates(unit_mix: list[Any] | None) -> dict[str, Any]:
    """
    Collapse an itemized unit mix into listing-level fields. The cheapest unit
    is the "starting from" figure quoted to buyers.
    """
    units = [u if isinstance(u, UnitMixEntry) else UnitMixEntry.model_validate(u) for u in unit_mix or []]
    if not units:
        return {}

    out: dict[str, Any] = {"unit_mix": [u.model_dump() for u in units]}

    beds = [u.bedrooms for u in units if u.bedrooms is not None]
    if beds:
        lo, hi = min(beds), max(beds)
        out["bedroom_type"] = f"{lo} Bedroom" if lo == hi else f"{lo}-{hi} Bedrooms"

    sizes = [u.sqft for u in units if u.sqft]
    if sizes:
        out["unit_size_range"] = format_size_range(min(sizes), max(sizes))

    priced = [u for u in units if u.price_from]
    if priced:
        cheapest = min(priced, key=lambda u: u.price_from)
        out["price"] = float(cheapest.price_from)
        if cheapest.bedrooms is not None:
            out["bedrooms"] = cheapest.bedrooms
        if cheapest.bathrooms is not None:
            out["bathrooms"] = cheapest.bathrooms
        if cheapest.sqft:
            out["sqft"] = int(cheapest.sqft)

    psfs = [u.psf for u in units if u.psf]
    if psfs:
        out["psf"] = float(min(psfs))

    return out


class _KeyedLocks:
    """One lock per natural key, created on demand and dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._locks: dict[str, list[Any]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# shared by every orchestrator in the process
_PROJECT_LOCKS = _KeyedLocks()


class ImportOrchestrator:
    def __init__(self, repo: PropertyRepository, defaults: ImportDefaults | None = None):
        self.repo = repo
        self.defaults = defaults or ImportDefaults.from_config()
        self._locks = _PROJECT_LOCKS

    # ------------------------------------------------------------------
    # Record building
    # ------------------------------------------------------------------

    def build_property_record(
        self,
        scraped: Mapping[str, Any],
        overrides: Mapping[str, Any] | None = None,
    ) -> PropertyRecord:
        """
        Merge order: unit-mix aggregates < extracted fields < manual overrides,
        then fallback defaults for anything still unset.
        """
        record: dict[str, Any] = unit_mix_aggregates(scraped.get("unit_mix"))

        for key, value in scraped.items():
            if key == "unit_mix" or _is_unset(value):
                continue
            field = _FIELD_MAP.get(key, key)
            coerced = _coerce(field, value)
            if not _is_unset(coerced):
                record[field] = coerced

        for key, value in normalize_overrides(overrides).items():
            field = _FIELD_MAP.get(key, key)
            if field == "unit_mix":
                record.update(unit_mix_aggregates(value))
                continue
            coerced = _coerce(field, value)
            if not _is_unset(coerced):
                record[field] = coerced

        if _is_unset(record.get("project_name")) and record.get("title"):
            record["project_name"] = record["title"]
        if _is_unset(record.get("title")) and record.get("project_name"):
            record["title"] = record["project_name"]

        d = self.defaults
        fallbacks = {
            "agent_name": d.agent_name,
            "agent_phone": d.agent_phone,
            "agent_email": d.agent_email,
            "lat": d.lat,
            "lng": d.lng,
            "expected_roi": d.expected_roi,
            "is_featured": d.is_featured,
            "is_overseas": d.is_overseas,
            "status": d.status,
            "launch_type": d.launch_type,
            "country": d.country,
            "property_type": d.property_type,
            "image_url": (record.get("image_urls") or [None])[0] or d.image_url,
            "project_description": record.get("description"),
        }
        for field, value in fallbacks.items():
            if _is_unset(record.get(field)) and value is not None:
                record[field] = value

        return record  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_record(
        self,
        scraped: Mapping[str, Any],
        overrides: Mapping[str, Any] | None = None,
        *,
        force_reimport: bool = False,
    ) -> ImportResult:
        """
        Build one consolidated listing and store it unless the project already
        exists. Never raises: every failure comes back as ImportResult.
        """
        validation = validate_record({**scraped, **normalize_overrides(overrides)})

        try:
            record = self.build_property_record(scraped, overrides)
        except Exception as err:  # noqa: BLE001
            logger.error(
                "import_build_failed",
                extra={"context": {"error": str(err)}},
            )
            return ImportResult(
                success=False,
                imported=0,
                message="Could not build a property record from the supplied data",
                errors=[str(err)],
                missing_fields=validation.missing_fields,
                recommendations=validation.recommendations,
            )

        project_name = record.get("project_name")
        if not project_name:
            return ImportResult(
                success=False,
                imported=0,
                message="Record has no project name; cannot check for duplicates",
                errors=["missing project_name"],
                missing_fields=validation.missing_fields,
                recommendations=validation.recommendations,
            )

        result = self._store([record], project_name, force_reimport=force_reimport)
        result.missing_fields = validation.missing_fields
        result.recommendations = validation.recommendations
        return result

    def _store(
        self,
        records: list[PropertyRecord],
        project_name: str,
        *,
        force_reimport: bool,
    ) -> ImportResult:
        errors: list[str] = []
        ids: list[int] = []
        imported = 0

        with self._locks.hold(project_name):
            try:
                existing = self.repo.find_by_project_name(project_name)
                if existing and not force_reimport:
                    raise DuplicateProjectError(project_name, len(existing))
            except DuplicateProjectError as dup:
                logger.info(
                    "import_duplicate_rejected",
                    extra={"context": {"project_name": project_name, "existing": dup.existing}},
                )
                return ImportResult(
                    success=False,
                    imported=0,
                    message=f"Project '{project_name}' already exists ({dup.existing} entries found)",
                    errors=[str(dup)],
                    project_name=project_name,
                )
            except Exception as err:  # noqa: BLE001
                logger.error(
                    "import_duplicate_check_failed",
                    extra={"context": {"project_name": project_name, "error": str(err)}},
                )
                return ImportResult(
                    success=False,
                    imported=0,
                    message=f"Storage error while checking for existing '{project_name}' entries",
                    errors=[str(err)],
                    project_name=project_name,
                )

            for rec in records:
                try:
                    stored = self.repo.create(rec)
                except Exception as err:  # noqa: BLE001
                    errors.append(str(err))
                    logger.error(
                        "import_row_failed",
                        extra={"context": {"project_name": project_name, "error": str(err)}},
                    )
                    continue
                imported += 1
                if stored.get("id") is not None:
                    ids.append(int(stored["id"]))

            # old rows go only once the replacement is stored
            if existing and imported:
                errors.extend(self._remove(existing, project_name))

        success = imported > 0
        if success:
            message = f"Successfully imported {imported} {project_name} entr{'y' if imported == 1 else 'ies'}"
        else:
            message = f"Failed to import {project_name}"
        logger.info(
            "import_complete",
            extra={"context": {"project_name": project_name, "imported": imported, "errors": len(errors)}},
        )
        return ImportResult(
            success=success,
            imported=imported,
            message=message,
            errors=errors,
            project_name=project_name,
            property_ids=ids,
        )

    def _remove(self, rows: list[PropertyRecord], project_name: str) -> list[str]:
        errors: list[str] = []
        removed = 0
        for row in rows:
            try:
                if self.repo.delete(int(row["id"])):
                    removed += 1
            except Exception as err:  # noqa: BLE001
                errors.append(str(err))
                logger.error(
                    "import_replace_delete_failed",
                    extra={"context": {"project_name": project_name, "id": row.get("id"), "error": str(err)}},
                )
        logger.info(
            "import_replaced_existing",
            extra={"context": {"project_name": project_name, "removed": removed}},
        )
        return errors
