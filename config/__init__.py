# config/__init__.py
# ============================================================
# Configuration package for the docflow batch pipelines.
# Provides process-wide defaults loaded from the environment
# or a .env file (tool commands, timeouts, templates).
#
# Usage:
#   from config.settings import settings
#   print(settings.extractor_command)
# ============================================================

from config.settings import Settings, settings

__all__ = ["Settings", "settings"]
