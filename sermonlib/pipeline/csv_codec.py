#!/usr/bin/env python3
"""
csv_codec.py
-------------------
Tabular interchange (CSV) import and export for the sermon catalog.

Import is deliberately forgiving: header names are matched by substring
against a list of candidates per field, bad dates fall back to today with
a warning, and malformed rows are skipped without aborting the batch.
Rows sharing a title (case-insensitive) are merged into one sermon with
several preaching instances.

Quoted fields may span lines. Export writes one row per sermon with every
field quoted, so that ``parse_csv(to_csv(sermons))`` recovers title, date,
series, summary, tags, references, type and place.

    Title,Date,Series,Summary,Tags,References,Type,Place
    "Hope","2024-12-01","Advent","","faith;advent","Isaiah 9:6","Sermon","Main Hall"

Programmatic API:
    from sermonlib.pipeline.csv_codec import parse_csv, to_csv
    result = parse_csv(path.read_text(encoding="utf-8"), logger=logger)
    store.import_sermons(result.sermons)
    text = to_csv(store.sermons)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

# --- Local imports ---
from sermonlib.catalog.models import PreachingInstance, Sermon, canonicalize, new_id
from sermonlib.core.exceptions import ExportError, InvalidDateError, MalformedRowError
from sermonlib.core.logging_manager import CatalogLogger, safe_logger
from sermonlib.utils.dates import parse_date

# Logical field -> header substrings, in matching order
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "title": ["title", "sermon", "name", "subject"],
    "date": ["date", "preached", "when", "time"],
    "series": ["series", "collection", "group"],
    "summary": ["summary", "description", "notes", "content"],
    "tags": ["tags", "keywords", "categories"],
    "references": ["references", "scripture", "verses", "bible"],
    "type": ["type", "category", "kind"],
    "place": ["place", "location", "venue", "church"],
}

EXPORT_HEADER = ["Title", "Date", "Series", "Summary", "Tags", "References", "Type", "Place"]

DEFAULT_TITLE = "Untitled"
DEFAULT_PLACE = "Unknown Location"
LIST_SEPARATOR = ";"


@dataclass(frozen=True)
class ImportWarning:
    """A recoverable problem found while importing a row."""
    row_number: int
    value:      str
    message:    str


@dataclass
class ImportResult:
    """
    Outcome of a CSV import.

    Attributes:
        sermons: Unique sermons, in first-seen order
        warnings: Rows imported with a fallback value
        skipped: Rows that could not be split into fields
    """
    sermons:  List[Sermon]            = field(default_factory=list)
    warnings: List[ImportWarning]     = field(default_factory=list)
    skipped:  List[MalformedRowError] = field(default_factory=list)

    @property
    def instance_count(self) -> int:
        return sum(len(s.preaching_history) for s in self.sermons)


# --- Record splitting ---
def iter_csv_records(text: str) -> Iterator[str]:
    """
    Yield CSV records, keeping line breaks that fall inside quoted fields.

    A quote left open runs to the end of the text; ``split_csv_line``
    then reports that record as malformed.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    start = 0
    in_quotes = False
    for index, char in enumerate(text):
        if char == '"':
            in_quotes = not in_quotes
        elif char == "\n" and not in_quotes:
            yield text[start:index]
            start = index + 1
    if start < len(text):
        yield text[start:]


def split_csv_line(line: str) -> List[str]:
    """
    Split one CSV record into stripped fields.

    Double-quoted fields may contain commas; a doubled quote inside a
    quoted field is a literal quote.

    Raises:
        MalformedRowError: If a quoted field is never closed
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    if in_quotes:
        raise MalformedRowError("Unterminated quoted field", line=line)

    fields.append("".join(current).strip())
    return fields


def match_columns(headers: Iterable[str]) -> Dict[str, Optional[int]]:
    """
    Map logical fields to header indices.

    For each field, candidates are tried in order and the first header
    containing the candidate (case-insensitive) wins.

    Returns:
        Field name -> column index, or None when no header matches
    """
    normalized = [h.replace('"', "").strip().lower() for h in headers]
    mapping: Dict[str, Optional[int]] = {}
    for name, candidates in COLUMN_CANDIDATES.items():
        mapping[name] = next(
            (
                index
                for candidate in candidates
                for index, header in enumerate(normalized)
                if candidate in header
            ),
            None,
        )
    return mapping


def _cell(values: List[str], index: Optional[int], default: str = "") -> str:
    if index is None or index >= len(values):
        return default
    return values[index] or default


def _split_list(text: str) -> List[str]:
    items: List[str] = []
    for part in text.split(LIST_SEPARATOR):
        part = part.strip()
        if part and part not in items:
            items.append(part)
    return items


# --- Import ---
def parse_csv(
    text: str,
    today: Optional[date] = None,
    logger: Optional[CatalogLogger] = None,
) -> ImportResult:
    """
    Parse interchange CSV text into sermons.

    Args:
        text: Whole file contents
        today: Fallback date for unparseable date cells (default: today)
        logger: Optional logger

    Returns:
        ImportResult with merged sermons, warnings and skipped rows
    """
    log = safe_logger(logger)
    today = today or date.today()
    result = ImportResult()

    records = list(iter_csv_records(text.strip()))
    if len(records) < 2:
        log.log_warning("CSV needs a header row and at least one data row")
        result.warnings.append(
            ImportWarning(0, "", "CSV needs a header row and at least one data row")
        )
        return result

    try:
        columns = match_columns(split_csv_line(records[0]))
    except MalformedRowError as e:
        e.row_number = 1
        result.skipped.append(e)
        log.log_warning("Unreadable CSV header", {"line": records[0]})
        return result

    log.log_debug("CSV column mapping", {"columns": columns})
    by_title: Dict[str, Sermon] = {}

    for row_number, record in enumerate(records[1:], start=2):
        try:
            values = split_csv_line(record)
        except MalformedRowError as e:
            e.row_number = row_number
            result.skipped.append(e)
            log.log_warning(
                "Skipping malformed CSV row", {"row": row_number, "line": record}
            )
            continue

        if all(v == "" for v in values):
            continue

        raw_date = _cell(values, columns["date"])
        try:
            when = parse_date(raw_date)
        except InvalidDateError as e:
            when = today
            result.warnings.append(ImportWarning(row_number, raw_date, str(e)))
            log.log_warning(
                "Unparseable date, using today",
                {"row": row_number, "value": raw_date, "fallback": today.isoformat()},
            )

        title = _cell(values, columns["title"], DEFAULT_TITLE)
        place = _cell(values, columns["place"], DEFAULT_PLACE)
        instance = PreachingInstance(id=new_id(), date=when, location=place)

        key = title.lower()
        existing = by_title.get(key)
        if existing is not None:
            merged = canonicalize(
                replace(
                    existing,
                    preaching_history=[*existing.preaching_history, instance],
                )
            )
            by_title[key] = merged
            log.log_debug(
                f"Merged preaching instance into {title!r}",
                {"row": row_number, "instances": len(merged.preaching_history)},
            )
            continue

        by_title[key] = Sermon(
            id=new_id(),
            title=title,
            date=when,
            series=_cell(values, columns["series"]) or None,
            summary=_cell(values, columns["summary"]) or None,
            tags=_split_list(_cell(values, columns["tags"])),
            references=_split_list(_cell(values, columns["references"])),
            type=_cell(values, columns["type"]) or None,
            place=place,
            preaching_history=[instance],
        )

    # dicts keep insertion order, so this is first-seen order
    result.sermons = list(by_title.values())

    log.log_info(
        "CSV import parsed",
        {
            "sermons": len(result.sermons),
            "instances": result.instance_count,
            "warnings": len(result.warnings),
            "skipped": len(result.skipped),
        },
    )
    return result


def read_csv_file(
    path: Path,
    today: Optional[date] = None,
    logger: Optional[CatalogLogger] = None,
) -> ImportResult:
    """Read and parse a UTF-8 CSV file (a leading BOM is ignored)."""
    text = Path(path).read_text(encoding="utf-8-sig")
    return parse_csv(text, today=today, logger=logger)


# --- Export ---
def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(sermons: Iterable[Sermon]) -> str:
    """
    Render sermons as interchange CSV.

    One row per sermon, dated and placed by its earliest preaching instance.
    """
    rows = [",".join(EXPORT_HEADER)]
    for sermon in map(canonicalize, sermons):
        cells = [
            sermon.title,
            sermon.date.isoformat(),
            sermon.series or "",
            sermon.summary or "",
            LIST_SEPARATOR.join(sermon.tags),
            LIST_SEPARATOR.join(sermon.references),
            sermon.type or "",
            sermon.place or "",
        ]
        rows.append(",".join(_quote(c) for c in cells))
    return "\n".join(rows)


def write_csv_file(
    path: Path,
    sermons: Iterable[Sermon],
    logger: Optional[CatalogLogger] = None,
) -> int:
    """
    Export sermons to a CSV file.

    Returns:
        Number of sermons written

    Raises:
        ExportError: If the file cannot be written
    """
    sermons = list(sermons)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(to_csv(sermons), encoding="utf-8")
    except OSError as e:
        safe_logger(logger).log_error(e, {"operation": "export_csv", "path": str(path)})
        raise ExportError(f"Cannot write CSV to {path}: {e}") from e

    safe_logger(logger).log_operation(
        "csv_exported", {"path": str(path), "sermons": len(sermons)}
    )
    return len(sermons)
