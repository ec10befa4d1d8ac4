# cli/main.py
# ============================================================
# docflow — Command Line Interface
# ============================================================
# Typer-based CLI wrapping the four batch pipelines plus a
# tool availability check.
#
# Usage:
#   docflow text scans/ --output out/ --ocr surya_ocr
#   docflow receipts receipts/ --output out/ --format csv
#   docflow contracts contract.pdf --ocr llm-caller --ocr-llm-template qwen-vl-ocr
#   docflow audio videos/ --format ogg --quality high
#   docflow check
#
#   python -m cli.main text scan.pdf
# ============================================================

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config.settings import settings
from docflow.errors import DocflowError, ToolUnavailableError
from docflow.pipeline import (
    AudioPipeline,
    ContractPipeline,
    ExtractionOptions,
    Pipeline,
    PipelineOrchestrator,
    ReceiptPipeline,
    RunConfig,
    RunReport,
    TextPipeline,
    TranscodeOptions,
)
from docflow.utils.logger import set_log_level

# ============================================================
# CLI App Setup
# ============================================================

app = typer.Typer(
    name="docflow",
    help=(
        "📄 docflow — Batch Document Pipelines\n\n"
        "Run files or flat directories through external extraction, LLM\n"
        "and media tools. Existing outputs are skipped unless --overwrite."
    ),
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

INPUT_HELP = "Input file or directory (top-level files only)."
OUTPUT_HELP = "Output file or directory. Defaults to beside each input."
OVERWRITE_HELP = "Reprocess files whose output already exists."
VERBOSE_HELP = "Verbose tool output and DEBUG logging."
OCR_HELP = "OCR tool (llm-caller, surya_ocr, paddleocr, ...). 'interactive' lets the extractor ask."
OCR_TEMPLATE_HELP = "LLM template for OCR, required with --ocr llm-caller."
CONTENT_TYPE_HELP = "Content type hint for the extractor: text or image."


# ============================================================
# Commands
# ============================================================

@app.command()
def text(
    input_path: Path = typer.Argument(..., help=INPUT_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
    ocr: str = typer.Option("interactive", "--ocr", help=OCR_HELP),
    ocr_llm_template: str = typer.Option("", "--ocr-llm-template", help=OCR_TEMPLATE_HELP),
    content_type: str = typer.Option("", "--content-type", help=CONTENT_TYPE_HELP),
    overwrite: bool = typer.Option(False, "--overwrite", help=OVERWRITE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
):
    """
    📝 Extract plain text from documents and images.

    Examples:
        text scan.pdf
        text scans/ --output out/ --ocr surya_ocr
    """
    pipeline = TextPipeline(ExtractionOptions(ocr, ocr_llm_template, content_type))
    _execute(pipeline, RunConfig(input_path, output, overwrite, verbose))


@app.command()
def receipts(
    input_path: Path = typer.Argument(..., help=INPUT_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
    summary_format: str = typer.Option("json", "--format", "-f", help="Summary format: json or csv."),
    ocr_template: str = typer.Option(
        settings.receipt_ocr_template, "--ocr-template", help="LLM template used for OCR."
    ),
    extraction_template: str = typer.Option(
        settings.receipt_extraction_template, "--template", help="LLM template for field extraction."
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help=OVERWRITE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
):
    """
    🧾 Extract structured data from receipts and invoices.

    In batch mode the records are grouped by type into
    <output>/total/receipts_<type>.<format>.

    Examples:
        receipts receipts/ --output out/
        receipts receipts/ --format csv --overwrite
    """
    pipeline = ReceiptPipeline(ocr_template, extraction_template)
    _execute(pipeline, RunConfig(input_path, output, overwrite, verbose, summary_format))


@app.command()
def contracts(
    input_path: Path = typer.Argument(..., help=INPUT_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
    template: str = typer.Option(
        settings.contract_llm_template, "--template", help="LLM template for the review."
    ),
    ocr: str = typer.Option("interactive", "--ocr", help=OCR_HELP),
    ocr_llm_template: str = typer.Option("", "--ocr-llm-template", help=OCR_TEMPLATE_HELP),
    content_type: str = typer.Option("", "--content-type", help=CONTENT_TYPE_HELP),
    overwrite: bool = typer.Option(False, "--overwrite", help=OVERWRITE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
):
    """
    ⚖️ Review contracts with an LLM template.

    Examples:
        contracts lease.pdf
        contracts contracts/ --output reviews/ --ocr surya_ocr
    """
    pipeline = ContractPipeline(ExtractionOptions(ocr, ocr_llm_template, content_type), template)
    _execute(pipeline, RunConfig(input_path, output, overwrite, verbose))


@app.command()
def audio(
    input_path: Path = typer.Argument(..., help=INPUT_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", hidden=True),
    audio_format: str = typer.Option("mp3", "--format", "-f", help="mp3, wav, ogg, aac or flac."),
    quality: str = typer.Option("standard", "--quality", "-q", help="low, standard or high."),
    overwrite: bool = typer.Option(False, "--overwrite", help=OVERWRITE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
):
    """
    🎵 Extract audio tracks from video files with ffmpeg.

    Examples:
        audio talk.mp4
        audio videos/ --output audio/ --format flac
    """
    pipeline = AudioPipeline(TranscodeOptions(audio_format, quality))
    _execute(pipeline, RunConfig(input_path, output or output_dir, overwrite, verbose))


@app.command()
def check():
    """
    🏥 Check that every external tool is installed and allowed.
    """
    console.print("[bold]Checking external tools...[/bold]\n")

    table = Table(title="Tool Availability", show_header=True)
    table.add_column("Tool", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Details")

    unavailable = 0
    seen = set()
    for pipeline in _all_pipelines():
        for tool_check in pipeline.required_tools():
            if tool_check.tool in seen:
                continue
            seen.add(tool_check.tool)
            try:
                pipeline.invoker.probe(
                    tool_check.tool,
                    args=tool_check.args,
                    timeout=tool_check.timeout,
                    marker=tool_check.marker,
                )
                table.add_row(tool_check.tool, "[green]✅[/green]", "available")
            except ToolUnavailableError as e:
                unavailable += 1
                table.add_row(tool_check.tool, "[red]❌[/red]", f"{e.kind.value}: {e.hint}")

    console.print(table)

    if unavailable:
        raise typer.Exit(code=1)


# ============================================================
# Helper Functions
# ============================================================

def _all_pipelines() -> list[Pipeline]:
    return [TextPipeline(), ReceiptPipeline(), ContractPipeline(), AudioPipeline()]


def _execute(pipeline: Pipeline, run: RunConfig) -> RunReport:
    """Run a pipeline, print the report and exit nonzero on any failure."""
    if run.verbose:
        set_log_level("DEBUG")

    lines = [
        f"[bold blue]{pipeline.name}[/bold blue] pipeline",
        f"Input:     {run.input_path}",
        f"Output:    {run.output_path or 'beside each input'}",
        f"Overwrite: {'yes' if run.overwrite else 'no'}",
    ]
    lines += [f"{key}: {value}" for key, value in pipeline.describe().items()]
    console.print(Panel("\n".join(lines), title="📄 docflow", border_style="blue"))

    try:
        report = PipelineOrchestrator(pipeline).run(run)
    except ToolUnavailableError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        for line in e.excerpt:
            console.print(f"  {escape(line)}")
        console.print(f"[yellow]{e.hint}[/yellow]")
        raise typer.Exit(code=1)
    except DocflowError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if report.discovered == 0:
        console.print(f"[red]No supported files found in {report.input_path}[/red]")
        console.print(f"Supported formats: {', '.join(sorted(pipeline.extensions))}")
        raise typer.Exit(code=1)

    _print_report_table(report)

    if report.failed:
        raise typer.Exit(code=1)
    return report


def _print_report_table(report: RunReport) -> None:
    """Print a summary table of processing results."""
    table = Table(title="Processing Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("Discovered", str(report.discovered))
    table.add_row("Succeeded", f"[green]{report.succeeded}[/green]")
    table.add_row("Skipped (existing)", f"[yellow]{report.skipped}[/yellow]")
    if report.skipped_unreadable:
        table.add_row("Skipped (unreadable)", f"[yellow]{report.skipped_unreadable}[/yellow]")
    table.add_row("Failed", f"[red]{report.failed}[/red]")
    if report.collected:
        table.add_row("Records collected", str(len(report.collected)))

    console.print(table)

    for failure in report.failures:
        console.print(f"[red]❌ {escape(failure.source.name)}[/red] {escape(f'[{failure.stage}] {failure.reason}')}")

    for path in report.summary_files:
        console.print(f"[green]📊 Summary:[/green] {path}")


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    app()
