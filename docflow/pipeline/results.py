# docflow/pipeline/results.py
# ============================================================
# Per-file Outcomes & Run Report
# ============================================================
# Every input file ends in exactly one of three outcomes:
#   - Success(artifact_path, payload)
#   - Skipped(artifact_path, payload)   output already existed
#   - Failure(stage, reason, excerpt)
#
# RunReport accumulates them for one run and derives the
# counts printed at the end of a batch.
# ============================================================

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Success:
    """The file went through every stage and its artifact was written."""
    source: Path
    artifact_path: Path
    payload: Any = None


@dataclass(frozen=True)
class Skipped:
    """
    The artifact already existed and overwrite was off.

    Attributes:
        payload: Re-read content of the existing artifact, for pipelines
                 that aggregate. None when nothing was re-read.
        unreadable: Why the existing artifact could not be re-read, or
                    None if it was read (or did not need to be).
    """
    source: Path
    artifact_path: Path
    payload: Any = None
    unreadable: Optional[str] = None


@dataclass(frozen=True)
class Failure:
    """A stage or the final write failed for this file."""
    source: Path
    stage: str
    reason: str
    excerpt: tuple[str, ...] = ()


PipelineResult = Union[Success, Skipped, Failure]


@dataclass
class RunReport:
    """
    Aggregated outcome of one run over an input set.

    Attributes:
        pipeline: Name of the pipeline that ran.
        input_path: The input root (absolute).
        output_path: Resolved output location, or None when outputs
                     were written beside their inputs.
        is_batch: True when the input root was a directory.
        discovered: Number of files selected by discovery.
        results: One outcome per processed file, in processing order.
        collected: Payloads gathered for aggregation (new and resumed).
        summary_files: Group summary files written after the loop.
    """
    pipeline: str
    input_path: Path
    output_path: Optional[Path] = None
    is_batch: bool = False
    discovered: int = 0
    results: list[PipelineResult] = field(default_factory=list)
    collected: list[Any] = field(default_factory=list)
    summary_files: list[Path] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if isinstance(r, Success))

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if isinstance(r, Skipped) and r.unreadable is None)

    @property
    def skipped_unreadable(self) -> int:
        return sum(1 for r in self.results if isinstance(r, Skipped) and r.unreadable is not None)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if isinstance(r, Failure))

    @property
    def failures(self) -> list[Failure]:
        return [r for r in self.results if isinstance(r, Failure)]
