# src/condora/services/validation.py

from typing import Any, Mapping

from condora.domain.listing import ValidationReport

# Core fields a listing cannot be published without
REQUIRED_CORE_FIELDS = [
    "title",
    "description",
    "address",
    "district",
    "price",
    "property_type",
    "tenure",
    "developer_name",
]

# Recommended fields: missing ones are reported with a remediation hint
RECOMMENDED_FIELDS = [
    ("postal_code", "Extract postal code from address for better location accuracy"),
    ("unit_mix", "Add bedroom/bathroom counts and square footage details"),
    ("nearby_mrt", "Add MRT station information for better searchability"),
    ("nearby_schools", "Add school information for family-oriented buyers"),
    ("launch_date", "Add launch/preview date for timeline information"),
    ("completion_date", "Add expected completion date for buyer planning"),
    ("image_urls", "Add property images for better visual appeal"),
    ("coordinates", "Add GPS coordinates for map integration and location-based search"),
    ("agent_contact", "Add agent name, phone, and email for lead generation"),
    ("expected_roi", "Add expected rental yield/ROI for investment analysis"),
]

# Fields that may be stored under another name depending on record shape
_ALIASES: dict[str, tuple[str, ...]] = {
    "address": ("address", "location"),
    "price": ("price", "price_from"),
    "image_urls": ("image_urls", "image_url"),
    "nearby_mrt": ("nearby_mrt", "mrt_nearby"),
    "nearby_schools": ("nearby_schools", "primary_schools_within_1km"),
    "coordinates": (),
    "agent_contact": (),
}


def _present(val: Any) -> bool:
    if val is None:
        return False
    if isinstance(val, bool):
        return True
    if isinstance(val, (int, float)):
        return val != 0
    if isinstance(val, str):
        return bool(val.strip())
    if isinstance(val, (list, tuple, dict, set)):
        return len(val) > 0
    return True


def _has(record: Mapping[str, Any], field: str) -> bool:
    if field == "coordinates":
        return _present(record.get("lat")) and _present(record.get("lng"))
    if field == "agent_contact":
        return all(_present(record.get(k)) for k in ("agent_name", "agent_phone", "agent_email"))
    keys = _ALIASES.get(field, (field,))
    return any(_present(record.get(k)) for k in keys)


def validate_record(record: Mapping[str, Any]) -> ValidationReport:
    """
    Report missing required and recommended fields of a scraped or
    canonical property record. Pure: the record is not modified.
    """
    missing: list[str] = []
    recommendations: list[str] = []

    for field in REQUIRED_CORE_FIELDS:
        if not _has(record, field):
            missing.append(field)

    for field, hint in RECOMMENDED_FIELDS:
        if not _has(record, field):
            missing.append(field)
            recommendations.append(hint)

    return ValidationReport(
        is_valid=not missing,
        missing_fields=missing,
        recommendations=recommendations,
    )
