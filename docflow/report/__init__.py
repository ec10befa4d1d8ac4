# docflow/report/__init__.py
# ============================================================
# Report Package
# ============================================================
# Groups structured records by their discriminant and writes
# the per-group summary files after a batch.
# ============================================================

from docflow.report.aggregate import (
    DEFAULT_GROUP,
    DISCRIMINANT_FIELD,
    flatten_record,
    group_records,
    sanitize_group_name,
    write_summaries,
)

__all__ = [
    "DEFAULT_GROUP",
    "DISCRIMINANT_FIELD",
    "flatten_record",
    "group_records",
    "sanitize_group_name",
    "write_summaries",
]
