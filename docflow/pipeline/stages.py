# docflow/pipeline/stages.py
# ============================================================
# Pipeline Stages — one external tool call each
# ============================================================
# Building blocks shared by the document pipelines:
#
#   ExtractionStage  doc-to-text → text file
#                    (fallback locator on a missing output,
#                     fingerprinted staging cache for
#                     multi-stage pipelines)
#   LlmStage         llm-caller call <template> → stdout
#   parse_structured_payload()
#                    fenced/unfenced JSON out of free-form
#                    LLM output
#
# Every failure surfaces as a StageFailure carrying a bounded
# excerpt of the tool's output.
# ============================================================

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from config.settings import settings
from docflow.document.paths import fingerprint
from docflow.errors import ConfigurationError, StageFailure
from docflow.tools.invoker import ToolInvoker, ToolResult
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger
from docflow.utils.text import excerpt_lines, preview

logger = get_logger(__name__)

INTERACTIVE_OCR = "interactive"
LLM_OCR = "llm-caller"
INTERMEDIATE_SUFFIX = ".extracted.txt"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


# ============================================================
# Helpers
# ============================================================

def tool_failure(stage: str, result: ToolResult) -> StageFailure:
    """Turn a failed ToolResult into a StageFailure with a bounded excerpt."""
    limit = settings.excerpt_lines
    excerpt = [f"stderr: {line}" for line in excerpt_lines(result.stderr, limit)]
    excerpt += [f"stdout: {line}" for line in excerpt_lines(result.stdout, limit)]
    return StageFailure(stage, result.error or f"{result.tool} failed", excerpt)


def read_text_artifact(path: Path, stage: str) -> str:
    """
    Read an intermediate or final text artifact and require content.

    Raises:
        StageFailure: If the file cannot be read or is blank.
    """
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise StageFailure(stage, f"Failed to read extracted text: {e}") from e
    if "\x00" in content:
        # NUL bytes cannot be passed on as command-line arguments
        logger.warning(f"Removed NUL bytes from {path.name}")
        content = content.replace("\x00", "")
    if not content.strip():
        raise StageFailure(stage, "Extracted text is empty")
    logger.info(f"Text content loaded ({len(content)} characters)")
    return content


def parse_structured_payload(payload: str) -> dict[str, Any]:
    """
    Pull a JSON object out of free-form LLM output.

    A ```json fenced block wins when present (surrounding prose is
    ignored); otherwise the whole payload is parsed.

    Raises:
        StageFailure: If no JSON object can be parsed. Only a short
            preview of the payload is attached.
    """
    match = _FENCED_BLOCK.search(payload)
    candidate = match.group(1) if match else payload

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise StageFailure(
            "parse",
            f"Error parsing LLM output: {e}",
            [preview(payload, settings.preview_chars)],
        ) from e

    if not isinstance(data, dict):
        raise StageFailure(
            "parse",
            f"Expected a JSON object, got {type(data).__name__}",
            [preview(payload, settings.preview_chars)],
        )
    return data


def enrich_record(record: dict[str, Any], source_name: str) -> dict[str, Any]:
    """Stamp a parsed record with its source file and extraction time."""
    record["source_file"] = source_name
    record["extraction_timestamp"] = (
        datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    )
    return record


# ============================================================
# Extraction stage
# ============================================================

@dataclass(frozen=True)
class ExtractionOptions:
    """
    How the extractor is asked to read documents.

    Attributes:
        ocr_tool: llm-caller, surya_ocr, ... or "interactive" to let the
                  extractor prompt the operator.
        ocr_llm_template: Template for llm-caller OCR (required with it).
        content_type: "text" or "image"; empty lets the tool decide.
    """
    ocr_tool: str = INTERACTIVE_OCR
    ocr_llm_template: str = ""
    content_type: str = ""

    @property
    def interactive(self) -> bool:
        return not self.ocr_tool or self.ocr_tool == INTERACTIVE_OCR

    def validate(self) -> None:
        if self.ocr_tool == LLM_OCR and not self.ocr_llm_template:
            raise ConfigurationError(
                "ocr_llm_template is required when using llm-caller as OCR tool "
                "(example: --ocr llm-caller --ocr-llm-template qwen-vl-ocr)"
            )


class ExtractionStage:
    """
    Runs the text/OCR extractor for one document.

    Example:
        >>> stage = ExtractionStage(invoker, locator, ExtractionOptions(ocr_tool="surya_ocr"))
        >>> text = stage.extract_cached(Path("scan.pdf"), Path("out/"), verbose=False)
    """

    name = "extract"

    def __init__(
        self,
        invoker: ToolInvoker,
        locator: FallbackLocator,
        options: ExtractionOptions,
        command: Optional[str] = None,
    ):
        self.invoker = invoker
        self.locator = locator
        self.options = options
        self.command = command or settings.extractor_command

    def build_args(self, input_file: Path, target: Path, verbose: bool) -> list[str]:
        args = [str(input_file)]
        if self.options.content_type:
            args += ["--content-type", self.options.content_type]
        if not self.options.interactive:
            args += ["--ocr", self.options.ocr_tool]
            if self.options.ocr_tool == LLM_OCR and self.options.ocr_llm_template:
                args += ["--llm_template", self.options.ocr_llm_template]
        if verbose:
            args.append("--verbose")
        args += ["-o", str(target)]
        return args

    def run(
        self,
        input_file: Path,
        target: Path,
        verbose: bool = False,
        staging_dir: Optional[Path] = None,
    ) -> Path:
        """
        Extract `input_file` into `target`.

        Returns:
            The path holding the extracted text (always `target`).

        Raises:
            StageFailure: On a tool failure or an unlocatable output.
        """
        args = self.build_args(input_file, target, verbose)
        logger.info(f"Command: {self.command} {' '.join(args)}")

        if self.options.interactive:
            logger.info("OCR tool not specified - the extractor will prompt for OCR tool selection")

        result = self.invoker.invoke(
            self.command,
            args,
            timeout=settings.interactive_timeout if self.options.interactive else settings.tool_timeout,
            interactive=self.options.interactive,
        )
        if not result.ok:
            raise tool_failure(self.name, result)

        return self.locator.recover(target, suffix=".txt", staging_dir=staging_dir)

    def extract_cached(self, input_file: Path, output_dir: Path, verbose: bool = False) -> str:
        """
        Extract text through the fingerprinted staging cache.

        The intermediate lives at <output_dir>/<fingerprint>/<stem>.extracted.txt
        and is reused whenever it exists, whatever the overwrite flag.

        Returns:
            The non-empty extracted text.
        """
        staging_dir = output_dir / fingerprint(input_file)
        try:
            staging_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create hash directory: {e}")
            staging_dir = output_dir

        intermediate = staging_dir / f"{input_file.stem}{INTERMEDIATE_SUFFIX}"
        if intermediate.exists():
            logger.info(f"Using existing extracted text file: {intermediate}")
        else:
            self.run(
                input_file,
                intermediate,
                verbose=verbose,
                staging_dir=staging_dir if staging_dir != output_dir else None,
            )
            logger.info("Text extracted successfully")

        return read_text_artifact(intermediate, self.name)


# ============================================================
# LLM stage
# ============================================================

class LlmStage:
    """Sends extracted text through an llm-caller template."""

    def __init__(
        self,
        invoker: ToolInvoker,
        template: str,
        name: str = "llm",
        command: Optional[str] = None,
    ):
        self.invoker = invoker
        self.template = template
        self.name = name
        self.command = command or settings.llm_command

    def run(self, text: str) -> str:
        """
        Call the template with the text and return its stdout.

        Raises:
            StageFailure: On a tool failure or an empty response.
        """
        args = ["call", self.template, "--var", f"text:text:{text}"]
        # The document text itself stays out of the logs
        logger.info(f"Command: {self.command} call {self.template} --var text:text:[{len(text)} characters]")

        result = self.invoker.invoke(self.command, args, timeout=settings.tool_timeout)
        if not result.ok:
            raise tool_failure(self.name, result)

        if not result.stdout.strip():
            raise StageFailure(self.name, f"{self.command} returned an empty result")
        return result.stdout
