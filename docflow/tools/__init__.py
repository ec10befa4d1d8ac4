# docflow/tools/__init__.py
# ============================================================
# External Tools Package
# ============================================================
# Runs the external CLI tools the pipelines depend on and
# recovers their outputs when they ignore the requested path.
#
# Key classes:
#   - ToolInvoker: runs commands, classifies failures, probes
#   - ToolResult: Dataclass holding one invocation's outcome
#   - FallbackLocator: finds misplaced tool outputs
# ============================================================

from docflow.tools.invoker import ToolInvoker, ToolResult
from docflow.tools.locator import FallbackLocator

__all__ = ["ToolInvoker", "ToolResult", "FallbackLocator"]
