# docflow/report/aggregate.py
# ============================================================
# Aggregation — grouped summary files
# ============================================================
# Structured records (new and resumed) are grouped by their
# discriminant ("type-code", read from the top level or from the
# nested "fields" object) and written one file per group:
#
#   <output>/total/<prefix><group>.json   pretty-printed array
#   <output>/total/<prefix><group>.csv    flattened table
#
# Records without a discriminant, or whose value is exactly
# "general", are unclassified and never written.
# ============================================================

import csv
import io
import json
import re
from pathlib import Path
from typing import Any, Iterable, Optional

from config.settings import settings
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

DISCRIMINANT_FIELD = "type-code"
FIELDS_KEY = "fields"
DEFAULT_GROUP = "general"
ARRAY_DELIMITER = "; "


# ============================================================
# Grouping
# ============================================================

def discriminant_of(record: dict[str, Any]) -> Optional[str]:
    """Return the record's discriminant, or None when it has none."""
    value = record.get(DISCRIMINANT_FIELD)
    if value in (None, ""):
        nested = record.get(FIELDS_KEY)
        if isinstance(nested, dict):
            value = nested.get(DISCRIMINANT_FIELD)
    if value in (None, ""):
        return None
    return str(value)


def sanitize_group_name(value: str) -> str:
    """
    Turn a discriminant value into a file-name safe group key.

    Example:
        >>> sanitize_group_name("  Hotel / Restaurant ")
        'hotel_restaurant'
    """
    name = re.sub(r"[^a-z0-9]+", "_", value.lower()).strip("_")
    return name or "unknown"


def group_records(records: Iterable[dict[str, Any]]) -> dict[Optional[str], list[dict[str, Any]]]:
    """
    Group records by sanitized discriminant, keeping input order.

    Values that sanitize to the same key share a group. Records
    without a discriminant, or whose raw value is DEFAULT_GROUP,
    are collected under the None key.
    """
    groups: dict[Optional[str], list[dict[str, Any]]] = {}
    for record in records:
        value = discriminant_of(record)
        key = None if value in (None, DEFAULT_GROUP) else sanitize_group_name(value)
        groups.setdefault(key, []).append(record)
    return groups


# ============================================================
# Flattening & serialization
# ============================================================

def _join_array(values: list) -> str:
    parts = []
    for item in values:
        if isinstance(item, (dict, list)):
            parts.append(json.dumps(item, ensure_ascii=False))
        elif item is None:
            parts.append("")
        else:
            parts.append(str(item))
    return ARRAY_DELIMITER.join(parts)


def flatten_record(record: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten a record into a single-level mapping for tabular output.

    Rules:
        - nested objects become dot-joined keys ("vendor.name")
        - the top-level "fields" object is promoted without a prefix
        - arrays are joined with "; "
        - the discriminant column is dropped (the file name carries it)

    Flattening an already-flat record returns it unchanged, minus
    the discriminant.
    """
    flat: dict[str, Any] = {}
    for key, value in record.items():
        if not prefix and key == FIELDS_KEY and isinstance(value, dict):
            flat.update(flatten_record(value))
            continue

        column = f"{prefix}.{key}" if prefix else key
        if column == DISCRIMINANT_FIELD:
            continue
        if isinstance(value, dict):
            flat.update(flatten_record(value, column))
        elif isinstance(value, list):
            flat[column] = _join_array(value)
        else:
            flat[column] = value
    return flat


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def to_csv(records: list[dict[str, Any]]) -> str:
    """Render records as CSV; columns in first-seen order."""
    rows = [flatten_record(r) for r in records]
    columns: list[str] = []
    for row in rows:
        for column in row:
            if column not in columns:
                columns.append(column)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, restval="", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _cell(v) for k, v in row.items()})
    return buffer.getvalue()


def to_json(records: list[dict[str, Any]]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


# ============================================================
# Writing
# ============================================================

def write_summaries(
    records: Iterable[dict[str, Any]],
    output_dir: Path,
    fmt: str = "json",
    overwrite: bool = False,
    prefix: str = "",
    summary_dir_name: Optional[str] = None,
) -> list[Path]:
    """
    Write one summary file per non-default group.

    Args:
        records: Structured records, each a JSON object.
        output_dir: Run output directory; summaries go to its
                    summary sub-directory ("total" by default).
        fmt: "json" or "csv".
        overwrite: Replace existing summary files. Otherwise each
                   existing group file is left untouched.
        prefix: Prepended to every group file name.
        summary_dir_name: Overrides settings.summary_dir_name.

    Returns:
        Summary files written during this call.
    """
    summary_dir = Path(output_dir) / (summary_dir_name or settings.summary_dir_name)
    try:
        summary_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create summary directory {summary_dir}: {e}; using {output_dir}")
        summary_dir = Path(output_dir)

    render = to_csv if fmt == "csv" else to_json
    written: list[Path] = []

    for group, items in group_records(records).items():
        if group is None:
            logger.debug(f"Not writing {len(items)} unclassified record(s)")
            continue

        path = summary_dir / f"{prefix}{group}.{fmt}"
        if path.exists() and not overwrite:
            logger.info(f"Summary file exists, skipping: {path}")
            continue

        try:
            path.write_text(render(items), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write summary {path}: {e}")
            continue

        logger.info(f"Summary for [bold]{group}[/bold] ({len(items)} records) saved to {path}")
        written.append(path)

    return written
