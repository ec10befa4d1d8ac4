# docflow/utils/__init__.py
# ============================================================
# Shared Utilities Package
# ============================================================
# Provides reusable helpers used across the pipelines:
#   - logger: Structured logging with Rich formatting
#   - text: Bounded excerpts of tool output and payload previews
# ============================================================

from docflow.utils.logger import get_logger, set_log_level
from docflow.utils.text import excerpt_lines, preview

__all__ = [
    "get_logger",
    "set_log_level",
    "excerpt_lines",
    "preview",
]
