# docflow/pipeline/text.py
# ============================================================
# Text Extraction Pipeline
# ============================================================
# One stage: the extractor writes <stem>.txt straight to its
# final location. When it ignores -o, the fallback locator
# picks the file up from the working directory.
# ============================================================

from pathlib import Path
from typing import Optional, Sequence

from config.settings import settings
from docflow.document.discovery import DOCUMENT_EXTENSIONS
from docflow.errors import PersistFailure
from docflow.pipeline.base import Pipeline, RunConfig, ToolCheck
from docflow.pipeline.results import Success
from docflow.pipeline.stages import ExtractionOptions, ExtractionStage, read_text_artifact
from docflow.tools.invoker import ToolInvoker
from docflow.tools.locator import FallbackLocator
from docflow.utils.logger import get_logger

logger = get_logger(__name__)


class TextPipeline(Pipeline):
    """Documents and images → plain text files."""

    name = "text"
    extensions = DOCUMENT_EXTENSIONS
    default_extension = ".txt"

    def __init__(
        self,
        options: Optional[ExtractionOptions] = None,
        invoker: Optional[ToolInvoker] = None,
        locator: Optional[FallbackLocator] = None,
    ):
        super().__init__(invoker, locator)
        self.options = options or ExtractionOptions()
        self.extraction = ExtractionStage(self.invoker, self.locator, self.options)

    def validate(self, run: RunConfig) -> None:
        super().validate(run)
        self.options.validate()

    def required_tools(self) -> Sequence[ToolCheck]:
        return [ToolCheck(self.extraction.command)]

    def output_name(self, input_file: Path) -> str:
        return f"{input_file.stem}.txt"

    def run_stages(self, input_file: Path, output_file: Path, run: RunConfig) -> Success:
        if output_file.resolve() == input_file.resolve():
            raise PersistFailure(output_file, "output would overwrite the input file")

        # A stale output would satisfy the locator's existence check
        if output_file.exists():
            try:
                output_file.unlink()
            except OSError as e:
                raise PersistFailure(output_file, f"cannot replace existing output: {e}") from e

        self.extraction.run(input_file, output_file, verbose=run.verbose)
        text = read_text_artifact(output_file, self.extraction.name)
        logger.info(f"Text extracted to [bold]{output_file}[/bold]")
        return Success(input_file, output_file, text)

    def describe(self) -> dict[str, str]:
        info = {"OCR tool": self.options.ocr_tool or "interactive"}
        if self.options.ocr_llm_template:
            info["OCR template"] = self.options.ocr_llm_template
        if self.options.content_type:
            info["Content type"] = self.options.content_type
        info["Extractor"] = settings.extractor_command
        return info
