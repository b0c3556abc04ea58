"""Parsing of GA4 page-traffic CSV exports into analytics rows."""

import csv
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from seoaudit.constants import (
    ANALYTICS_COLUMN_MAP,
    ANALYTICS_NUMERIC_FIELDS,
    CURRENCY_SYMBOLS,
    THOUSANDS_SEPARATOR,
)

logger = logging.getLogger(__name__)

_DATE_RANGE_RE = re.compile(r"date range[:\s]+(.+)", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)m")
_SECONDS_RE = re.compile(r"(\d+)s")
_LEADING_NUMBER_RE = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


class AnalyticsParseError(ValueError):
    """Raised when an analytics export is malformed or incomplete."""


class AnalyticsRow(BaseModel):
    """Traffic metrics of one page path."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    path: str = Field(min_length=1)
    views: int = Field(ge=0)
    active_users: int = Field(default=0, ge=0)
    avg_engagement_time: float = Field(default=0.0, ge=0)  # seconds
    event_count: int = Field(default=0, ge=0)
    key_events: int = Field(default=0, ge=0)
    total_revenue: float = Field(default=0.0, ge=0)


@dataclass
class ParseResult:
    """Rows parsed from one export plus its date range comment."""

    rows: list[AnalyticsRow] = field(default_factory=list)
    date_range: Optional[str] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


def parse_number(value: str) -> float:
    """Parse the leading decimal number of a string, 0 when there is none."""
    match = _LEADING_NUMBER_RE.match(value)
    if not match:
        return 0
    return float(match.group(0))


def clean_numeric(value: str) -> float:
    """Strip currency symbols and thousands separators, then parse."""
    for symbol in CURRENCY_SYMBOLS:
        value = value.replace(symbol, "")
    return parse_number(value.replace(THOUSANDS_SEPARATOR, ""))


def parse_engagement_time(value: str) -> float:
    """Parse a GA4 engagement time into seconds.

    Accepts ``"Xm Ys"``, ``"Xm"``, ``"Ys"`` or a bare number of seconds.
    Minutes and seconds are matched independently and summed; when neither
    matches the whole field is parsed as a number, defaulting to 0.
    """
    minutes = _MINUTES_RE.search(value)
    seconds = _SECONDS_RE.search(value)
    if not minutes and not seconds:
        return parse_number(value)

    total = 0
    if minutes:
        total += int(minutes.group(1)) * 60
    if seconds:
        total += int(seconds.group(1))
    return total


class AnalyticsParser:
    """Parses GA4 "Pages and screens" CSV exports."""

    def parse(self, csv_content: str) -> ParseResult:
        """Parse raw CSV text into validated analytics rows.

        Comment lines starting with ``#`` are dropped; a ``# Date range: ...``
        comment is captured. Rows with inconsistent column counts are
        tolerated, rows failing validation are dropped.

        Args:
            csv_content: Raw export text

        Returns:
            ParseResult with the valid rows and the date range

        Raises:
            AnalyticsParseError: If the export is empty, lacks the path or
                views column, or contains no valid row
        """
        date_range = None
        data_lines = []

        for line in csv_content.splitlines():
            if line.startswith("#"):
                date_match = _DATE_RANGE_RE.search(line)
                if date_match:
                    date_range = date_match.group(1).strip()
                continue
            data_lines.append(line)

        csv_data = "\n".join(data_lines).strip()
        if not csv_data:
            raise AnalyticsParseError("CSV file is empty or contains only comments")

        records = [record for record in csv.reader(csv_data.splitlines()) if record]
        if len(records) < 2:
            raise AnalyticsParseError(
                "CSV file must contain a header row and at least one data row"
            )

        header_row, data_rows = records[0], records[1:]
        headers = [header.strip().lstrip("﻿").strip().lower() for header in header_row]

        column_mapping = [
            (index, ANALYTICS_COLUMN_MAP[header])
            for index, header in enumerate(headers)
            if header in ANALYTICS_COLUMN_MAP
        ]
        mapped_fields = {name for _, name in column_mapping}
        if "path" not in mapped_fields or "views" not in mapped_fields:
            raise AnalyticsParseError(
                'CSV must contain at least "Page path and screen class" and "Views" columns. '
                f"Found columns: {', '.join(headers)}"
            )

        rows = []
        dropped = 0
        for record in data_rows:
            values = self._map_record(record, column_mapping)
            try:
                rows.append(AnalyticsRow(**values))
            except ValidationError:
                dropped += 1

        if not rows:
            raise AnalyticsParseError("No valid data rows found in CSV")

        if dropped:
            logger.info(f"Dropped {dropped} invalid analytics rows")
        logger.info(f"Parsed {len(rows)} analytics rows (date range: {date_range or 'unknown'})")

        return ParseResult(rows=rows, date_range=date_range)

    def _map_record(self, record: list[str], column_mapping: list[tuple[int, str]]) -> dict:
        values: dict = {name: 0 for name in ANALYTICS_NUMERIC_FIELDS}
        values["path"] = ""

        for index, name in column_mapping:
            raw = record[index].strip() if index < len(record) else ""
            if name == "path":
                values[name] = raw
            elif name == "avg_engagement_time":
                values[name] = parse_engagement_time(raw)
            else:
                values[name] = clean_numeric(raw)
        return values


def parse_analytics_csv(csv_content: str) -> ParseResult:
    """Convenience wrapper around ``AnalyticsParser.parse``."""
    return AnalyticsParser().parse(csv_content)
