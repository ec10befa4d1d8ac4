# docflow/pipeline/base.py
# ============================================================
# Pipeline Strategy — shared shape of every batch pipeline
# ============================================================
# A pipeline decides WHAT happens to one file; the orchestrator
# decides WHEN (resume checks, ordering, aggregation). Concrete
# pipelines (text, receipts, contracts, audio) subclass Pipeline
# and fill in:
#
#   - extensions / output_name() / default_extension
#   - required_tools()      probes run before the batch
#   - run_stages()          the per-file work
#   - load_existing()       resume support (aggregating only)
#   - aggregate()           group summaries (aggregating only)
#
# RunConfig is the immutable per-run configuration built once
# at the CLI boundary and passed to every call.
# ============================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from docflow.document.discovery import DocumentDiscovery, InputSet
from docflow.document.paths import derive_output_file, resolve_output_path
from docflow.errors import ConfigurationError, PersistFailure
from docflow.pipeline.results import PipelineResult
from docflow.tools.invoker import ToolInvoker
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

SUMMARY_FORMATS = ("json", "csv")


# ============================================================
# Data Classes
# ============================================================

@dataclass(frozen=True)
class RunConfig:
    """
    Immutable configuration for one run.

    Attributes:
        input_path: File or directory to process.
        output_path: Output file or directory; None writes beside inputs.
        overwrite: Reprocess files whose output already exists.
        verbose: Pass --verbose to tools and log at DEBUG level.
        summary_format: "json" or "csv" for group summary files.
    """
    input_path: Path
    output_path: Optional[Path] = None
    overwrite: bool = False
    verbose: bool = False
    summary_format: str = "json"


@dataclass(frozen=True)
class ToolCheck:
    """An availability probe to run before the batch starts."""
    tool: str
    args: tuple[str, ...] = ("-h",)
    timeout: Optional[int] = None
    marker: Optional[str] = None


def write_artifact(path: Path, content: str) -> Path:
    """
    Write a per-file artifact as UTF-8 text.

    Raises:
        PersistFailure: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise PersistFailure(path, str(e)) from e
    return path


# ============================================================
# Pipeline base class
# ============================================================

class Pipeline(ABC):
    """
    Base class for the concrete batch pipelines.

    Subclasses set `name`, `extensions` and `default_extension`, and
    implement output_name(), required_tools() and run_stages().
    """

    name: str = "pipeline"
    extensions: frozenset = frozenset()
    default_extension: str = ""
    aggregates: bool = False

    def __init__(
        self,
        invoker: Optional[ToolInvoker] = None,
        locator: Optional[FallbackLocator] = None,
    ):
        self.invoker = invoker or ToolInvoker()
        self.locator = locator or FallbackLocator()
        self.discovery = DocumentDiscovery(self.extensions)

    # --- Validation & setup -----------------------------------

    def validate(self, run: RunConfig) -> None:
        """
        Check run options before any side effect.

        Raises:
            ConfigurationError: On an invalid option combination.
        """
        if run.summary_format not in SUMMARY_FORMATS:
            raise ConfigurationError(
                f"Unknown summary format '{run.summary_format}'. "
                f"Available formats: {', '.join(SUMMARY_FORMATS)}"
            )

    @abstractmethod
    def required_tools(self) -> Sequence[ToolCheck]:
        """Probes that must pass before the first file is touched."""

    def discover(self, root: Union[str, Path]) -> InputSet:
        return self.discovery.discover(root)

    def resolve_output_path(self, output_path: Union[str, Path], is_batch: bool) -> Path:
        return resolve_output_path(output_path, is_batch)

    # --- Per-file work ----------------------------------------

    @abstractmethod
    def output_name(self, input_file: Path) -> str:
        """Artifact file name used when the output is a directory."""

    def output_file_for(self, input_file: Path, output_path: Optional[Path], is_batch: bool) -> Path:
        return derive_output_file(
            input_file,
            output_path,
            is_batch,
            self.output_name(input_file),
            self.default_extension,
        )

    @abstractmethod
    def run_stages(self, input_file: Path, output_file: Path, run: RunConfig) -> PipelineResult:
        """
        Process one file end to end and write its artifact.

        Raises:
            StageFailure: A stage failed; the orchestrator records it.
            PersistFailure: The artifact could not be written.
        """

    # --- Resume & aggregation ---------------------------------

    def load_existing(self, output_file: Path) -> Any:
        """
        Re-read an existing artifact so it still counts in summaries.

        Non-aggregating pipelines have nothing to re-read.

        Raises:
            OSError, ValueError: If the artifact cannot be read or parsed.
        """
        return None

    def aggregate(self, payloads: list[Any], output_dir: Path, run: RunConfig) -> list[Path]:
        """Write group summaries; returns the files written."""
        return []

    def describe(self) -> dict[str, str]:
        """Pipeline specific settings shown in the CLI header."""
        return {}
