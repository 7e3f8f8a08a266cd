# src/condora/extraction/rules.py
"""
Extraction rule catalog.

Three rule kinds, evaluated in the order they appear in DEFAULT_RULES:

  - TableRule:   key/value pairs read from <table> rows and <dl> lists,
                 header text matched against a fixed vocabulary
  - PatternRule: ordered regexes for one field, first acceptable match wins
  - DerivedRule: aggregates computed from the whole document

A field set by an earlier rule is never overwritten by a later one.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

MAX_VALUE_LENGTH = 500

PostProcessor = Callable[[str], Optional[Any]]


# ---------------------------------------------------------------------
# Post-processors (return None to reject the candidate)
# ---------------------------------------------------------------------

_MILLION_RE = re.compile(r"\d\s*(?:m|mil|million)\b", re.I)
_DECIMAL_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")


def digits_only(value: str) -> str | None:
    out = re.sub(r"\D", "", value)
    return out or None


def decimal_number(value: str) -> str | None:
    """'S$1.92M' -> '1920000', '3,801.4 sqm' -> '3801.4'."""
    m = _DECIMAL_RE.search(value)
    if not m:
        return None
    num = m.group(0).replace(",", "")
    if _MILLION_RE.search(value):
        return str(round(float(num) * 1_000_000))
    return num


def district_label(value: str) -> str | None:
    m = re.search(r"\d{1,2}", value)
    if not m:
        return None
    return f"District {int(m.group(0))}"


def year_range(value: str) -> str:
    return re.sub(r"(\d{4})\s*/\s*(\d{4})", r"\1-\2", value)


_BEDROOM_TOKEN_RE = re.compile(r"\bbed|\bbr\b|\bstudio\b|\bpenthouse\b", re.I)


def bedroom_range(value: str) -> str | None:
    # unit-mix rows put sizes or prices beside the label; those are not bedroom types
    if not _BEDROOM_TOKEN_RE.search(value):
        return None
    return re.sub(
        r"(\d+)\s*(?:to|-)\s*(\d+)\s*-?\s*Bed[a-z]*\.?",
        r"\1-\2 Bedrooms",
        value,
        flags=re.I,
    )


def split_list(value: str) -> list[str] | None:
    items = [s.strip(" .") for s in re.split(r"[,;|]", value)]
    items = [s for s in items if s]
    return items or None


def postal_code(value: str) -> str | None:
    m = re.search(r"\b\d{6}\b", value)
    return m.group(0) if m else None


POSTPROCESSORS: dict[str, PostProcessor] = {
    "no_of_units": digits_only,
    "no_of_blocks": digits_only,
    "site_area_sqm": decimal_number,
    "price_from": decimal_number,
    "psf_from": decimal_number,
    "district": district_label,
    "completion_date": year_range,
    "launch_date": year_range,
    "bedroom_types": bedroom_range,
    "nearby_mrt": split_list,
    "nearby_schools": split_list,
    "nearby_amenities": split_list,
    "postal_code": postal_code,
}


# ---------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class TableRule:
    # (header substring, field); first matching entry wins
    vocabulary: tuple[tuple[str, str], ...]
    kind: Literal["table"] = "table"

    def field_for(self, header: str) -> str | None:
        h = header.lower()
        for needle, field in self.vocabulary:
            if needle in h:
                return field
        return None


@dataclass(frozen=True)
class PatternRule:
    field: str
    patterns: tuple[re.Pattern[str], ...]
    kind: Literal["pattern"] = "pattern"


@dataclass(frozen=True)
class DerivedRule:
    field: str
    derive: Callable[[str, str], Optional[Any]]  # (raw, clean) -> value
    kind: Literal["derived"] = "derived"


ExtractionRule = TableRule | PatternRule | DerivedRule


# ---------------------------------------------------------------------
# Structured vocabulary
# ---------------------------------------------------------------------

TABLE_VOCABULARY: tuple[tuple[str, str], ...] = (
    ("project name", "project_name"),
    ("developer", "developer_name"),
    ("site area", "site_area_sqm"),
    ("address", "address"),
    ("location", "address"),
    ("district", "district"),
    ("tenure", "tenure"),
    ("postal", "postal_code"),
    ("property type", "property_type"),
    ("blocks", "no_of_blocks"),
    ("units", "no_of_units"),
    ("storeys", "storey_range"),
    ("storey", "storey_range"),
    ("completion", "completion_date"),
    ("expected top", "completion_date"),
    ("launch", "launch_date"),
    ("preview", "launch_date"),
    ("mrt", "nearby_mrt"),
    ("school", "nearby_schools"),
    ("amenities", "nearby_amenities"),
    ("bedroom type", "bedroom_types"),
    ("unit type", "bedroom_types"),
    ("psf", "psf_from"),
    ("price", "price_from"),
    ("status", "project_status"),
)


# ---------------------------------------------------------------------
# Pattern catalog
# ---------------------------------------------------------------------

# label: value up to end of line, tag or pipe
_VALUE = r"([^\n<|]{2,200})"


def _p(pattern: str, flags: int = re.I) -> re.Pattern[str]:
    return re.compile(pattern, flags)


def _labelled(label: str) -> re.Pattern[str]:
    return _p(r"\b" + label + r"\s*[:\-]\s*" + _VALUE)


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule("project_name", (
        _labelled(r"Project\s+Name"),
        _p(r"<h1[^>]*>(.*?)</h1>", re.I | re.S),
    )),
    PatternRule("title", (
        _p(r"<h1[^>]*>(.*?)</h1>", re.I | re.S),
        _p(r"<title[^>]*>(.*?)</title>", re.I | re.S),
        _labelled(r"Project\s+Name"),
    )),
    PatternRule("description", (
        _p(r"<meta\s+(?:name|property)=[\"'](?:og:)?description[\"']\s+content=[\"']([^\"']+)[\"']"),
        _p(r"\b(?:Project\s+)?Description\s*[:\-]\s*([^\n<|]{10,500})"),
    )),
    PatternRule("developer_name", (
        _labelled(r"Developer(?:\s+Name)?"),
        _p(r"\b[Dd]eveloped\s+by\s+([A-Z][\w&.'\- ]{2,80}?)(?=[.,;\n<]|$)", 0),
    )),
    PatternRule("address", (
        _labelled(r"(?:Address|Location)"),
        _p(
            r"\b(\d{1,4}[A-Z]?\s+(?:[A-Z][a-z]+\s){1,4}"
            r"(?:Road|Rd|Street|St|Avenue|Ave|Gardens|Drive|Dr|Lane|Crescent|Walk|Way|Link|Place|Rise|View|Hill|Close|Terrace)"
            r"(?:,\s*Singapore\s+\d{6})?)",
            0,
        ),
    )),
    PatternRule("postal_code", (
        _p(r"\bSingapore\s+(\d{6})\b"),
        _p(r"\bPostal(?:\s+Code)?\s*[:\-]?\s*(\d{6})\b"),
    )),
    PatternRule("district", (
        _p(r"\bDistrict\s*[:\-]?\s*D?(\d{1,2})\b"),
        _p(r"\bD(\d{1,2})\b", 0),
    )),
    PatternRule("tenure", (
        _labelled(r"Tenure"),
        _p(r"\b(Freehold|\d{2,3}[- ]?(?:years?|yrs)(?:\s+leasehold)?)\b"),
    )),
    PatternRule("property_type", (
        _labelled(r"Property\s+Type"),
        _p(r"\b(Executive\s+Condominium|Condominium|Apartment|Cluster\s+House|Strata\s+Landed)\b"),
    )),
    PatternRule("no_of_units", (
        _p(r"\b(?:Total\s+)?(?:No\.?\s+of\s+)?Units[ \t]*[:\-][ \t]*([\d,]+)"),
        _p(r"\b([\d,]{2,6})[ \t]+(?:residential[ \t]+)?units\b"),
    )),
    PatternRule("no_of_blocks", (
        _p(r"\b(?:No\.?\s+of\s+)?Blocks?[ \t]*[:\-][ \t]*(\d+)"),
        _p(r"\b(\d{1,3})[ \t]+(?:residential[ \t]+)?blocks?\b"),
    )),
    PatternRule("storey_range", (
        _p(r"\bStoreys?[ \t]*[:\-][ \t]*([^\n<|]{1,60})"),
        _p(r"\b(\d{1,3}(?:[ \t]*(?:to|-)[ \t]*\d{1,3})?[- ]?storeys?)\b"),
    )),
    PatternRule("site_area_sqm", (
        _p(r"\bSite\s+Area\s*[:\-]?\s*([\d,.]+)\s*(?:sq\.?\s*m\b|sqm\b|m2\b|m²)"),
        _p(r"\bSite\s+Area\s*[:\-]\s*([\d,.]+)"),
    )),
    PatternRule("price_from", (
        _p(
            r"\b(?:Prices?\s+(?:start(?:ing)?\s+)?from|Starting\s+from|Price\s*[:\-])\s*S?\$\s*"
            r"([\d,.]+(?:\s*(?:M|mil|million)\b)?)(?![\d,.]*\s*psf)"
        ),
    )),
    PatternRule("psf_from", (
        _p(r"S?\$\s*([\d,]+(?:\.\d+)?)\s*(?:psf\b|per\s+sq\.?\s*ft)"),
        _p(r"\bPSF\s*[:\-]\s*S?\$?\s*([\d,.]+)"),
    )),
    PatternRule("launch_date", (
        _labelled(r"(?:Launch|Preview)\s+Date"),
    )),
    PatternRule("completion_date", (
        _labelled(r"(?:Expected\s+)?(?:TOP|Completion)(?:\s+Date)?"),
        _p(r"\b(20\d{2}\s*/\s*20\d{2})\b"),
    )),
    PatternRule("nearby_mrt", (
        _labelled(r"(?:Nearest\s+|Nearby\s+)?MRT(?:\s+Stations?)?"),
        _p(r"\b((?:[A-Z][a-z]+\s){1,3}MRT)\b", 0),
    )),
    PatternRule("nearby_schools", (
        _labelled(r"(?:Nearby\s+)?Schools?(?:\s+Nearby)?"),
        _p(r"\b((?:[A-Z][a-z]+\s){1,4}(?:Primary|Secondary)\s+School)\b", 0),
    )),
    PatternRule("nearby_amenities", (
        _labelled(r"(?:Nearby\s+)?Amenities"),
    )),
    PatternRule("project_status", (
        _labelled(r"(?:Project\s+)?Status"),
    )),
    PatternRule("bedroom_types", (
        _p(r"\b(\d\s*(?:to|-)\s*\d\s*-?\s*Bed[a-z]*\.?)"),
        _labelled(r"Bedroom\s+Types?"),
    )),
)


# ---------------------------------------------------------------------
# Derived rules
# ---------------------------------------------------------------------

_UNIT_REGION_RE = re.compile(r"unit\s*mix|bedroom|unit\s*types?", re.I)
_SQFT_RE = re.compile(r"\b(\d[\d,]{2,6})\s*(?:sq\.?\s*ft|sqft|sf)\b", re.I)
_MIX_RE = re.compile(r"\b(\d)\s*-?\s*Bed(?:room)?s?\b[^%]{0,60}?\d{1,3}(?:\.\d+)?\s*%", re.I)
_PENTHOUSE_RE = re.compile(r"\bpenthouse\b", re.I)
_IMG_RE = re.compile(
    r"<img[^>]+src=[\"']([^\"']+?\.(?:jpe?g|png|webp)(?:\?[^\"']*)?)[\"']",
    re.I,
)

UNIT_REGION_WINDOW = 4000
MAX_IMAGES = 10


def format_size_range(lo: float, hi: float) -> str:
    if lo == hi:
        return f"{lo:,.0f} sqft"
    return f"{lo:,.0f}-{hi:,.0f} sqft"


def derive_unit_size_range(raw: str, clean: str) -> str | None:
    m = _UNIT_REGION_RE.search(clean)
    if not m:
        return None
    region = clean[m.start(): m.start() + UNIT_REGION_WINDOW]
    sizes = [int(s.replace(",", "")) for s in _SQFT_RE.findall(region)]
    sizes = [s for s in sizes if 100 <= s <= 20_000]
    if not sizes:
        return None
    return format_size_range(min(sizes), max(sizes))


def derive_bedroom_types(raw: str, clean: str) -> str | None:
    counts = sorted({int(n) for n in _MIX_RE.findall(clean)})
    if not counts:
        return None
    labels = [f"{n} Bedroom" for n in counts]
    if _PENTHOUSE_RE.search(raw):
        labels.append("Penthouse")
    return ", ".join(labels)


def derive_image_urls(raw: str, clean: str) -> list[str] | None:
    seen: list[str] = []
    for url in _IMG_RE.findall(raw):
        if url not in seen:
            seen.append(url)
        if len(seen) >= MAX_IMAGES:
            break
    return seen or None


DERIVED_RULES: tuple[DerivedRule, ...] = (
    DerivedRule("unit_size_range", derive_unit_size_range),
    DerivedRule("bedroom_types", derive_bedroom_types),
    DerivedRule("image_urls", derive_image_urls),
)


DEFAULT_RULES: tuple[ExtractionRule, ...] = (
    TableRule(TABLE_VOCABULARY),
    *PATTERN_RULES,
    *DERIVED_RULES,
)

# Applied after all rules, only where still unset
FIELD_DEFAULTS: dict[str, str] = {
    "country": "Singapore",
    "property_type": "Condominium",
    "launch_type": "new-launch",
    "status": "available",
}
