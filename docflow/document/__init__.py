# docflow/document/__init__.py
# ============================================================
# Document Handling Package
# ============================================================
# Decides what gets processed and where results go:
#   - discovery: top-level input enumeration with an
#     extension allow-list
#   - paths: output validation, per-file artifact paths and
#     content fingerprints for the staging cache
# ============================================================

from docflow.document.discovery import (
    DOCUMENT_EXTENSIONS,
    VIDEO_EXTENSIONS,
    DocumentDiscovery,
    InputSet,
    normalize_extension,
)
from docflow.document.paths import derive_output_file, fingerprint, resolve_output_path

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "DocumentDiscovery",
    "InputSet",
    "normalize_extension",
    "derive_output_file",
    "fingerprint",
    "resolve_output_path",
]
