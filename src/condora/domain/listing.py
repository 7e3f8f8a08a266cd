# src/condora/domain/listing.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UnitMixEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    unit_type: str = ""
    bedrooms: int | None = None
    bathrooms: int | None = None
    sqft: float | None = None
    price_from: float | None = None
    psf: float | None = None


class ScrapedRecord(TypedDict, total=False):
    # Core
    title: str
    description: str
    project_name: str
    developer_name: str

    # Location
    address: str
    district: str
    country: str
    postal_code: str

    # Specs
    property_type: str
    tenure: str
    no_of_units: str
    no_of_blocks: str
    storey_range: str
    site_area_sqm: str

    # Pricing
    price_from: str
    psf_from: str

    # Units
    unit_mix: list[dict[str, Any]]
    unit_size_range: str
    bedroom_types: str

    # Timeline
    launch_date: str
    completion_date: str

    # Surroundings
    nearby_schools: list[str]
    nearby_mrt: list[str]
    nearby_amenities: list[str]

    # Status
    project_status: str
    launch_type: str
    status: str

    image_urls: list[str]


class PropertyRecord(TypedDict, total=False):
    id: int
    title: str
    description: str
    project_description: str
    project_name: str
    developer_name: str

    location: str
    district: str
    country: str
    postal_code: str
    lat: float
    lng: float

    property_type: str
    tenure: str
    status: str
    launch_type: str
    project_status: str

    no_of_units: int
    no_of_blocks: int
    storey_range: str
    site_area_sqm: float

    price: float
    psf: float
    bedrooms: int
    bathrooms: int
    sqft: int
    bedroom_type: str
    unit_size_range: str
    unit_mix: list[dict[str, Any]]

    launch_date: str
    completion_date: str

    nearby_schools: list[str]
    nearby_mrt: list[str]
    nearby_amenities: list[str]

    image_url: str
    image_urls: list[str]

    agent_name: str
    agent_phone: str
    agent_email: str
    expected_roi: float

    is_featured: bool
    is_overseas: bool


@dataclass
class ValidationReport:
    is_valid: bool
    missing_fields: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ImportResult:
    success: bool
    imported: int
    message: str
    errors: list[str] = field(default_factory=list)
    missing_fields: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    project_name: str | None = None
    property_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
