# docflow/errors.py
# ============================================================
# Error Taxonomy
# ============================================================
# Two families of errors:
#   - Run-aborting: ConfigurationError, DiscoveryError,
#     PathValidationError, ToolUnavailableError. Raised before
#     any file is processed; the CLI maps them to exit code 1.
#   - File-scoped: StageFailure, PersistFailure. Caught by the
#     orchestrator, recorded as a Failure result, batch goes on.
# ============================================================

from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union


class ErrorKind(str, Enum):
    """
    Classification of a failed tool invocation, checked in this order:
    - BLOCKED: rejected by the command allow-list
    - NOT_FOUND: the executable does not exist
    - FAILED: nonzero exit, timeout or any other runtime error
    """
    BLOCKED = "blocked"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class DocflowError(Exception):
    """Base class for every error raised by the engine."""


# ============================================================
# Run-aborting errors
# ============================================================

class ConfigurationError(DocflowError):
    """Invalid combination of run options (checked before any side effect)."""


class DiscoveryError(DocflowError):
    """The input root does not exist or cannot be listed."""

    def __init__(self, root: Union[str, Path], reason: str):
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"Cannot discover inputs in '{root}': {reason}")


class PathValidationError(DocflowError):
    """The output location has the wrong shape for the processing mode."""


class ToolUnavailableError(DocflowError):
    """A required external tool failed its availability probe."""

    def __init__(
        self,
        tool: str,
        kind: ErrorKind,
        detail: str = "",
        excerpt: Sequence[str] = (),
    ):
        self.tool = tool
        self.kind = kind
        self.detail = detail
        self.excerpt = list(excerpt)
        super().__init__(f"{tool} is unavailable ({kind.value}): {detail}")

    @property
    def hint(self) -> str:
        """What the operator should do about it."""
        if self.kind is ErrorKind.BLOCKED:
            return f"Add '{self.tool}' to your allowed commands list to enable it"
        if self.kind is ErrorKind.NOT_FOUND:
            return f"Please install {self.tool} first"
        return f"Run '{self.tool} -h' manually to inspect the failure"


# ============================================================
# File-scoped errors
# ============================================================

class StageFailure(DocflowError):
    """One stage of a per-file pipeline failed."""

    def __init__(self, stage: str, message: str, excerpt: Optional[Sequence[str]] = None):
        self.stage = stage
        self.message = message
        self.excerpt = list(excerpt or [])
        super().__init__(f"[{stage}] {message}")


class PersistFailure(DocflowError):
    """Writing a per-file artifact failed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write '{path}': {reason}")
