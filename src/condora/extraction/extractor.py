# src/condora/extraction/extractor.py
from __future__ import annotations

from typing import Any, Iterable, Iterator

from bs4 import BeautifulSoup

from condora.adapters.logging_utils import get_logger
from condora.domain.listing import ScrapedRecord
from condora.extraction.normalize import clean_text
from condora.extraction.rules import (
    DEFAULT_RULES,
    FIELD_DEFAULTS,
    MAX_VALUE_LENGTH,
    POSTPROCESSORS,
    DerivedRule,
    ExtractionRule,
    PatternRule,
    TableRule,
)

logger = get_logger(__name__)


def _accept(field: str, text: str) -> Any | None:
    """Clean, post-process and bound a candidate value; None means rejected."""
    value = clean_text(text).strip(" .,;:-")
    if not value or len(value) > MAX_VALUE_LENGTH:
        return None
    post = POSTPROCESSORS.get(field)
    if post is None:
        return value
    return post(value) or None


def iter_key_values(raw: str) -> Iterator[tuple[str, str]]:
    """(header, value) pairs from table rows and definition lists."""
    if "<" not in raw:
        return
    soup = BeautifulSoup(raw, "html.parser")
    for tr in soup.find_all("tr"):
        cells = tr.find_all(["th", "td"])
        if len(cells) >= 2:
            yield cells[0].get_text(" ", strip=True), cells[1].get_text(" ", strip=True)
    for dt in soup.find_all("dt"):
        dd = dt.find_next_sibling("dd")
        if dd is not None:
            yield dt.get_text(" ", strip=True), dd.get_text(" ", strip=True)


class FieldExtractor:
    """
    Runs an ordered rule list over one document and returns a partial record.
    Fields that no rule resolves are simply absent.
    """

    def __init__(self, rules: Iterable[ExtractionRule] = DEFAULT_RULES, *, apply_defaults: bool = True):
        self.rules = tuple(rules)
        self.apply_defaults = apply_defaults

    def extract(self, raw: str | None) -> ScrapedRecord:
        raw = raw or ""
        clean = clean_text(raw, keep_lines=True)
        record: dict[str, Any] = {}

        for rule in self.rules:
            if isinstance(rule, TableRule):
                self._apply_table(rule, raw, record)
            elif isinstance(rule, PatternRule):
                if rule.field not in record:
                    value = self.match_pattern(rule, raw, clean)
                    if value is not None:
                        record[rule.field] = value
            elif isinstance(rule, DerivedRule):
                if rule.field not in record:
                    value = rule.derive(raw, clean)
                    if value:
                        record[rule.field] = value

        if self.apply_defaults:
            for field, default in FIELD_DEFAULTS.items():
                record.setdefault(field, default)

        logger.info(
            "fields_extracted",
            extra={"context": {"fields": sorted(record), "chars": len(raw)}},
        )
        return record  # type: ignore[return-value]

    @staticmethod
    def match_pattern(rule: PatternRule, raw: str, clean: str) -> Any | None:
        for pattern in rule.patterns:
            for text in (raw, clean):
                m = pattern.search(text)
                if not m:
                    continue
                candidate = m.group(1) if m.groups() else m.group(0)
                value = _accept(rule.field, candidate or "")
                if value is not None:
                    return value
        return None

    @staticmethod
    def _apply_table(rule: TableRule, raw: str, record: dict[str, Any]) -> None:
        for header, text in iter_key_values(raw):
            field = rule.field_for(header)
            if field is None or field in record:
                continue
            value = _accept(field, text)
            if value is not None:
                record[field] = value


_default_extractor = FieldExtractor()


def extract_fields(raw: str | None) -> ScrapedRecord:
    return _default_extractor.extract(raw)
