# tests/test_extractor.py
import re

from condora.extraction.extractor import FieldExtractor, extract_fields, iter_key_values
from condora.extraction.rules import PatternRule, decimal_number, format_size_range

LISTING_HTML = """
<html>
<head>
  <title>Skyline Residences | New Launch</title>
  <meta name="description" content="Skyline Residences is a freehold condominium in District 10.">
</head>
<body>
  <h1>Skyline Residences</h1>
  <table>
    <tr><th>Developer</th><td>Skyline Land Pte Ltd</td></tr>
    <tr><th>Tenure</th><td>Freehold</td></tr>
    <tr><th>Property Type</th><td>Condominium</td></tr>
    <tr><th>District</th><td>D10</td></tr>
    <tr><th>Total Units</th><td>320 units</td></tr>
    <tr><th>Expected TOP</th><td>2027/2028</td></tr>
    <tr><th>Address</th><td>12 Holland Road, Singapore 258851</td></tr>
  </table>
  <p>Prices from S$1.28M. Average S$2,150 psf.</p>
  <h2>Unit Mix</h2>
  <p>1 Bedroom 484 sqft 20%, 2 Bedroom 678 sqft 35%, 3 Bedroom 1,044 sqft 30%,
     4 Bedroom 1,744 sqft 15%. Penthouse available.</p>
  <p>Close to Holland Village MRT and Henry Park Primary School.</p>
  <img src="https://cdn.example.com/skyline/facade.jpg">
  <img src="https://cdn.example.com/skyline/pool.webp?w=800">
  <img src="https://cdn.example.com/skyline/facade.jpg">
</body>
</html>
"""

BROCHURE_TEXT = """Project Name: Aurora Bay
Developer: Aurora Development Pte Ltd
Tenure: 99-year leasehold
District: 15
Site Area: 12,450.5 sqm
Unit Types: 2 to 4 Bedrooms
Expected TOP: 2029/2030
Launch Date: March 2026
"""


def test_listing_page_fields():
    rec = extract_fields(LISTING_HTML)

    assert rec["project_name"] == "Skyline Residences"
    assert rec["title"] == "Skyline Residences"
    assert rec["description"].startswith("Skyline Residences is a freehold condominium")
    assert rec["developer_name"] == "Skyline Land Pte Ltd"
    assert rec["tenure"] == "Freehold"
    assert rec["property_type"] == "Condominium"
    assert rec["district"] == "District 10"
    assert rec["no_of_units"] == "320"
    assert rec["completion_date"] == "2027-2028"
    assert rec["address"] == "12 Holland Road, Singapore 258851"
    assert rec["postal_code"] == "258851"
    assert rec["price_from"] == "1280000"
    assert rec["psf_from"] == "2150"
    assert rec["nearby_mrt"] == ["Holland Village MRT"]
    assert rec["nearby_schools"] == ["Henry Park Primary School"]


def test_unit_mix_aggregates_from_text():
    rec = extract_fields(LISTING_HTML)

    assert rec["unit_size_range"] == "484-1,744 sqft"
    assert rec["bedroom_types"] == "1 Bedroom, 2 Bedroom, 3 Bedroom, 4 Bedroom, Penthouse"


def test_image_urls_are_deduplicated_in_page_order():
    rec = extract_fields(LISTING_HTML)
    assert rec["image_urls"] == [
        "https://cdn.example.com/skyline/facade.jpg",
        "https://cdn.example.com/skyline/pool.webp?w=800",
    ]


def test_plain_text_brochure_uses_labelled_patterns():
    rec = extract_fields(BROCHURE_TEXT)

    assert rec["project_name"] == "Aurora Bay"
    assert rec["title"] == "Aurora Bay"
    assert rec["developer_name"] == "Aurora Development Pte Ltd"
    assert rec["tenure"] == "99-year leasehold"
    assert rec["district"] == "District 15"
    assert rec["site_area_sqm"] == "12450.5"
    assert rec["bedroom_types"] == "2-4 Bedrooms"
    assert rec["completion_date"] == "2029-2030"
    assert rec["launch_date"] == "March 2026"


def test_table_value_wins_over_prose():
    raw = (
        "<table><tr><td>Tenure</td><td>Freehold</td></tr></table>"
        "<p>Tenure: 99 years leasehold</p>"
    )
    assert extract_fields(raw)["tenure"] == "Freehold"


def test_defaults_fill_only_missing_fields():
    rec = extract_fields("Property Type: Executive Condominium\n")

    assert rec["property_type"] == "Executive Condominium"
    assert rec["country"] == "Singapore"
    assert rec["launch_type"] == "new-launch"
    assert rec["status"] == "available"


def test_defaults_can_be_disabled():
    rec = FieldExtractor(apply_defaults=False).extract("nothing useful here")
    assert rec == {}


def test_over_long_values_are_rejected():
    raw = "<table><tr><td>Developer</td><td>" + "A" * 600 + "</td></tr></table>"
    assert "developer_name" not in extract_fields(raw)


def test_empty_input():
    rec = FieldExtractor(apply_defaults=False).extract(None)
    assert rec == {}


def test_price_ignores_psf_figures():
    rec = extract_fields("Price: S$2,480 psf onwards\n")
    assert "price_from" not in rec
    assert rec["psf_from"] == "2480"


def test_custom_rule_list():
    rules = (PatternRule("project_name", (re.compile(r"condo\s+called\s+(\w+)", re.I),)),)
    rec = FieldExtractor(rules, apply_defaults=False).extract("A condo called Verdant.")
    assert rec == {"project_name": "Verdant"}


def test_definition_lists_are_read_as_key_values():
    raw = "<dl><dt>Tenure</dt><dd>Freehold</dd><dt>Developer</dt><dd>UOL</dd></dl>"
    assert list(iter_key_values(raw)) == [("Tenure", "Freehold"), ("Developer", "UOL")]


def test_decimal_number_handles_millions():
    assert decimal_number("S$1.92M") == "1920000"
    assert decimal_number("3,801.4 sqm") == "3801.4"
    assert decimal_number("n/a") is None


def test_size_range_format():
    assert format_size_range(635, 1744) == "635-1,744 sqft"
    assert format_size_range(635, 635) == "635 sqft"


def test_unit_mix_table_rows_are_not_bedroom_labels():
    raw = """
    <table>
      <tr><th>Unit Type</th><th>Size</th></tr>
      <tr><td>2 Bedroom</td><td>635 sqft</td></tr>
      <tr><td>3 Bedroom</td><td>980 sqft</td></tr>
    </table>
    <p>2 Bedroom 635 sqft 40%, 3 Bedroom 980 sqft 60%</p>
    """
    rec = extract_fields(raw)

    assert rec["bedroom_types"] == "2 Bedroom, 3 Bedroom"
    assert rec["unit_size_range"] == "635-980 sqft"


def test_bedroom_type_row_is_still_read():
    raw = "<table><tr><th>Bedroom Types</th><td>1 to 4 Bedroom</td></tr></table>"
    assert extract_fields(raw)["bedroom_types"] == "1-4 Bedrooms"


def test_counts_do_not_run_across_brochure_lines():
    raw = "Project Name: Lumen Park\nTotal Units: 320\nBlocks < 3 storeys > 10\nTenure: Freehold\n"
    rec = extract_fields(raw)

    assert rec["no_of_units"] == "320"
    assert "no_of_blocks" not in rec
    assert rec["tenure"] == "Freehold"


def test_plain_text_angle_brackets_survive_extraction():
    rec = extract_fields("Unit Mix\nSizes from < 700 sqft up to > 1,200 sqft\n")
    assert rec["unit_size_range"] == "700-1,200 sqft"
