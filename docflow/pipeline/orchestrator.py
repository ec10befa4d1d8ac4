# docflow/pipeline/orchestrator.py
# ============================================================
# Pipeline Orchestrator — Batch Execution Engine
# ============================================================
# Drives one pipeline over an input root:
#
#   validate → input exists → batch mode → resolve output
#   → probe tools → discover → for each file:
#        resume check → run_stages → record outcome
#   → aggregate (batch mode, aggregating pipelines only)
#
# Design Decisions:
#   1. Fail fast: configuration, path and tool problems abort
#      the run before the first file is touched.
#   2. Per-file isolation: a StageFailure or PersistFailure is
#      recorded as a Failure and the batch moves on.
#   3. Sequential: one file is fully processed before the next.
#   4. Resume: an existing output is skipped but still re-read
#      so summaries include it.
#
# Usage:
#   from docflow.pipeline.orchestrator import PipelineOrchestrator
#   orchestrator = PipelineOrchestrator(ReceiptPipeline())
#   report = orchestrator.run(RunConfig(input_path=Path("receipts/")))
# ============================================================

import time
from pathlib import Path
from typing import Optional

from rich.markup import escape

from docflow.errors import DiscoveryError, PersistFailure, StageFailure
from docflow.pipeline.base import Pipeline, RunConfig
from docflow.pipeline.results import Failure, PipelineResult, RunReport, Skipped, Success
from docflow.tools.invoker import ToolResult
from docflow.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineOrchestrator:
    """
    Runs a Pipeline over a file or a flat directory of files.

    Example:
        >>> orchestrator = PipelineOrchestrator(TextPipeline())
        >>> report = orchestrator.run(RunConfig(input_path=Path("scans/")))
        >>> print(report.succeeded, report.failed)
    """

    def __init__(self, pipeline: Pipeline):
        self.pipeline = pipeline

    def check_tools(self) -> list[ToolResult]:
        """
        Probe every tool the pipeline needs, once per tool.

        Raises:
            ToolUnavailableError: On the first tool that fails its probe.
        """
        results = []
        seen = set()
        for check in self.pipeline.required_tools():
            if check.tool in seen:
                continue
            seen.add(check.tool)
            results.append(
                self.pipeline.invoker.probe(
                    check.tool,
                    args=check.args,
                    timeout=check.timeout,
                    marker=check.marker,
                )
            )
        return results

    def run(self, run: RunConfig) -> RunReport:
        """
        Process every discovered input and aggregate the results.

        Args:
            run: Immutable configuration for this run.

        Returns:
            RunReport with one outcome per discovered file.

        Raises:
            ConfigurationError, DiscoveryError, PathValidationError,
            ToolUnavailableError: Before any file is processed.
        """
        self.pipeline.validate(run)

        input_path = Path(run.input_path)
        if not input_path.exists():
            raise DiscoveryError(input_path, "input path does not exist")
        input_path = input_path.resolve()
        is_batch = input_path.is_dir()

        output_path: Optional[Path] = None
        if run.output_path is not None:
            output_path = self.pipeline.resolve_output_path(run.output_path, is_batch)

        self.check_tools()

        inputs = self.pipeline.discover(input_path)
        if is_batch:
            inputs = self._drop_own_outputs(inputs, output_path)
        report = RunReport(
            pipeline=self.pipeline.name,
            input_path=input_path,
            output_path=output_path,
            is_batch=is_batch,
            discovered=len(inputs),
        )

        if not inputs:
            logger.warning(f"No supported files found in {input_path}")
            return report

        logger.info(
            f"Pipeline [bold]{self.pipeline.name}[/bold] starting — "
            f"{len(inputs)} file(s), {'batch' if is_batch else 'single file'} mode"
        )
        run_start = time.perf_counter()

        for index, input_file in enumerate(inputs, start=1):
            result = self.process_file(input_file, index, len(inputs), output_path, is_batch, run)
            report.results.append(result)
            if self.pipeline.aggregates and isinstance(result, (Success, Skipped)) and result.payload is not None:
                report.collected.append(result.payload)

        if is_batch and self.pipeline.aggregates and report.collected:
            summary_root = output_path or input_path
            report.summary_files = self.pipeline.aggregate(report.collected, summary_root, run)

        total_ms = (time.perf_counter() - run_start) * 1000
        logger.info(
            f"Pipeline complete — {report.succeeded} succeeded, {report.skipped} skipped, "
            f"{report.failed} failed, {total_ms:.0f}ms total"
        )
        return report

    def process_file(
        self,
        input_file: Path,
        index: int,
        total: int,
        output_path: Optional[Path],
        is_batch: bool,
        run: RunConfig,
    ) -> PipelineResult:
        """Resume-check and process a single file; never raises for file-scoped errors."""
        logger.info(f"Processing [{index}/{total}]: [bold]{input_file.name}[/bold]")
        output_file = self.pipeline.output_file_for(input_file, output_path, is_batch)

        if output_file.resolve() == input_file.resolve():
            reason = "output would overwrite the input file; choose another output with -o"
            logger.error(f"❌ {input_file.name}: {reason}")
            return Failure(input_file, "persist", reason)

        if output_file.exists() and not run.overwrite:
            return self._resume(input_file, output_file, is_batch)

        start = time.perf_counter()
        try:
            result = self.pipeline.run_stages(input_file, output_file, run)
        except StageFailure as e:
            logger.error(f"❌ {input_file.name}: {escape(str(e))}")
            for line in e.excerpt:
                logger.error(f"   {escape(line)}")
            return Failure(input_file, e.stage, e.message, tuple(e.excerpt))
        except PersistFailure as e:
            logger.error(f"❌ {input_file.name}: {escape(str(e))}")
            return Failure(input_file, "persist", e.reason)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"✅ {input_file.name} done in {elapsed_ms:.0f}ms")
        return result

    def _drop_own_outputs(self, inputs: list[Path], output_path: Optional[Path]) -> list[Path]:
        """Remove discovered files that are the planned output of another input."""
        planned = {}
        for input_file in inputs:
            output_file = self.pipeline.output_file_for(input_file, output_path, True).resolve()
            if output_file != input_file.resolve():
                planned[output_file] = input_file

        kept = []
        for input_file in inputs:
            source = planned.get(input_file.resolve())
            if source is not None:
                logger.info(f"Skipping {input_file.name}: it is the output of {source.name}")
                continue
            kept.append(input_file)
        return kept

    def _resume(self, input_file: Path, output_file: Path, is_batch: bool) -> Skipped:
        logger.info(f"Output file already exists, skipping: {output_file}")

        # Only batch runs aggregate, so only they need the old payload
        if not (self.pipeline.aggregates and is_batch):
            return Skipped(input_file, output_file)

        try:
            payload = self.pipeline.load_existing(output_file)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not re-read existing output {output_file.name}: {e}")
            return Skipped(input_file, output_file, unreadable=str(e))

        logger.info(f"Loaded existing data from {output_file.name} for aggregation")
        return Skipped(input_file, output_file, payload)
